"""In-app notifications.

Everything here is best effort: callers hand work to ``dispatch`` and never
see its failures.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

from flask import current_app

from ..extensions import db
from ..models import Notification, User

logger = logging.getLogger(__name__)

EXECUTOR_KEY = "gymhub.notification_executor"


def init_notifications(app):
    if app.config.get("NOTIFICATIONS_ASYNC"):
        app.extensions[EXECUTOR_KEY] = ThreadPoolExecutor(
            max_workers=app.config.get("NOTIFICATION_WORKERS", 4),
            thread_name_prefix="notifications",
        )


def admin_user_ids():
    return list(
        db.session.execute(
            db.select(User.id).filter_by(role="admin", status="active")
        ).scalars()
    )


def create_for_users(user_ids, title, message, type="info", kind="general",
                     link=None, metadata=None):
    notifications = [
        Notification(
            user_id=uid,
            title=title,
            message=message,
            type=type,
            kind=kind,
            link=link,
            metadata_=metadata,
        )
        for uid in user_ids
    ]
    db.session.add_all(notifications)
    db.session.commit()
    return notifications


def notify_admins(title, message, **opts):
    return create_for_users(admin_user_ids(), title, message, **opts)


def notify_member(member_id, title, message, **opts):
    return create_for_users([member_id], title, message, **opts)


def _run_best_effort(fn, args, kwargs):
    try:
        fn(*args, **kwargs)
    except Exception:
        db.session.rollback()
        logger.exception("Notification %s failed", getattr(fn, "__name__", fn))


def _run_in_app_context(app, fn, args, kwargs):
    with app.app_context():
        _run_best_effort(fn, args, kwargs)


def dispatch(fn, *args, **kwargs):
    """Run ``fn`` without letting it fail the caller.

    Uses the bounded notification pool when the app has one, otherwise runs
    inline. Errors are logged and the session rolled back.
    """
    app = current_app._get_current_object()
    executor = app.extensions.get(EXECUTOR_KEY)
    if executor is None:
        _run_best_effort(fn, args, kwargs)
        return
    try:
        executor.submit(_run_in_app_context, app, fn, args, kwargs)
    except RuntimeError:
        # pool shut down during interpreter exit
        logger.exception("Could not schedule notification %s", fn.__name__)
