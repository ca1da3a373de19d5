#!/usr/bin/env python
"""
Run the console's test suites with Django's test runner
Usage: python Doc/run_tests.py [app ...]
"""
import os
import sys
from pathlib import Path

import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'ricetrade.core',
    'ricetrade.parties',
    'ricetrade.stock',
    'ricetrade.sales',
    'ricetrade.cashbook',
    'ricetrade.reports',
    'ricetrade.notifications',
]

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'ricetrade.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    labels = [f'ricetrade.{name}' for name in sys.argv[1:]] or APPS
    failures = test_runner.run_tests(labels)
    sys.exit(bool(failures))
