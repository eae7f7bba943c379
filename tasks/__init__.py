"""Celery wiring for background jobs.

Tasks run inside a Flask app context so they can use ``db`` and the app
config exactly like request handlers do.
"""
from celery import Celery, Task


def celery_init_app(app):
    class FlaskTask(Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery_app = Celery(app.name, task_cls=FlaskTask)
    celery_app.config_from_object(app.config["CELERY"])
    celery_app.conf.update(worker_hijack_root_logger=False)
    celery_app.set_default()
    app.extensions["celery"] = celery_app
    return celery_app


# registers the shared tasks on every Celery app created above
from tasks import email  # noqa: E402,F401
