"""Project boot: settings, DRF default classes, and system checks load in a fresh interpreter."""

import os
import subprocess
import sys
from pathlib import Path

from django.test import SimpleTestCase

SRC_DIR = Path(__file__).resolve().parent.parent


class StartupTests(SimpleTestCase):
    def _run(self, *args):
        env = {**os.environ, "DJANGO_SETTINGS_MODULE": "core.settings"}
        return subprocess.run(
            [sys.executable, *args],
            cwd=SRC_DIR,
            env=env,
            capture_output=True,
            text=True,
            timeout=120,
        )

    def test_manage_check_passes(self):
        result = self._run("manage.py", "check")
        self.assertEqual(result.returncode, 0, result.stderr)

    def test_exception_handler_imports_first(self):
        code = (
            "import django; django.setup(); "
            "from django.utils.module_loading import import_string; "
            "from rest_framework.settings import api_settings; "
            "import_string('core.exceptions.custom_exception_handler'); "
            "api_settings.DEFAULT_AUTHENTICATION_CLASSES; "
            "api_settings.DEFAULT_PERMISSION_CLASSES"
        )
        result = self._run("-c", code)
        self.assertEqual(result.returncode, 0, result.stderr)
