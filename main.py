from __future__ import annotations

import logging
import os

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers.otp import router as otp_router
from routers.sitemap import router as sitemap_router
from utils.brevo_email import email_dev_mode
from utils.otp_service import OTPService, get_otp_service
from utils.visits import get_visit_registry


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

OTP_PURGE_MINUTES = int(os.getenv("OTP_PURGE_MINUTES", "5"))

app = FastAPI(title="Bay Woods Relay")

# The contact form and site map are served from another origin.
origins = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins else ["*"],
    allow_credentials=bool(origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(otp_router)
app.include_router(sitemap_router)


def _purge_expired_otps() -> int:
    deleted = get_otp_service().store.purge_expired()
    if deleted:
        logger.info("Purged %d expired OTP(s)", deleted)
    return deleted


def _drop_idle_visits() -> int:
    dropped = get_visit_registry().drop_idle()
    if dropped:
        logger.info("Dropped %d idle visit(s)", dropped)
    return dropped


@app.on_event("startup")
def _start_scheduler():
    sched = BackgroundScheduler(timezone=os.getenv("TZ", "UTC"))
    sched.add_job(_purge_expired_otps, "interval", minutes=OTP_PURGE_MINUTES, id="purge_expired_otps", replace_existing=True)
    sched.add_job(_drop_idle_visits, "interval", minutes=OTP_PURGE_MINUTES, id="drop_idle_visits", replace_existing=True)
    sched.start()
    app.state._scheduler = sched


@app.on_event("shutdown")
def _stop_scheduler():
    sched = getattr(app.state, "_scheduler", None)
    if sched:
        sched.shutdown(wait=False)


@app.get("/")
def root(service: OTPService = Depends(get_otp_service)):
    return {
        "status": "Relay running",
        "otp_store": service.store.backend,
        "email_dev_mode": email_dev_mode(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "42067")))
