from datetime import datetime

import pytz
from flask import current_app, has_app_context

from edu_erp.extensions import db

DEFAULT_TIMEZONE = "Africa/Douala"


# Institution local time
def get_local_time():
    tz_name = DEFAULT_TIMEZONE
    if has_app_context():
        tz_name = current_app.config.get("APP_TIMEZONE", DEFAULT_TIMEZONE)
    return datetime.now(pytz.timezone(tz_name))


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=get_local_time, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=get_local_time,
        onupdate=get_local_time,
        nullable=False
    )
