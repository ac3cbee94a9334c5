# config/settings/__init__.py
import os

# DJANGO_ENV: local (default) | prod | test
_env = os.getenv("DJANGO_ENV", "local").lower()

if _env == "prod":
    from .prod import *  # noqa
elif _env == "test":
    from .test import *  # noqa
else:
    from .local import *  # noqa
