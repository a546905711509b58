from apscheduler.schedulers.background import BackgroundScheduler

from config import settings
from modules.auth.services.verification_codes import VerificationCodeStore, verification_codes

def start_code_sweep_job(store: VerificationCodeStore = verification_codes) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(store.sweep, 'interval', minutes=settings.CODE_SWEEP_INTERVAL_MINUTES)
    scheduler.start()
    return scheduler
