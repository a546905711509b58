from .code_sweep import start_code_sweep_job

__all__ = ['start_code_sweep_job']
