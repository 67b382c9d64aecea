from typing import Optional

import sentry_sdk

from .config import Settings, get_settings


def configure_error_monitoring(settings: Optional[Settings] = None) -> bool:
    settings = settings or get_settings()
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.2)
    return True
