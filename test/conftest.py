"""
Test Configuration

Environment setup MUST happen before any application import: settings and
the loguru sinks are built at import time.

Layout:
- test/platform: shared helpers (fan-out, exception handlers)
- test/service/ticketing/unit: use cases and adapters against in-memory fakes
- test/service/ticketing/integration: repositories against a temp-file SQLite database
"""

import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ['DEBUG'] = 'true'
    os.environ['NOTIFIER_BACKEND'] = 'console'
    # Never reach a real database or gateway from the test run
    os.environ['DATABASE_URL_OVERRIDE'] = f'sqlite+aiosqlite:///{test_log_dir / "unused.db"}'
    os.environ['STRIPE_SECRET_KEY'] = 'sk_test_unit'
    os.environ['STRIPE_SIGNING_SECRET'] = 'whsec_test_payment'
    os.environ['STRIPE_REFUND_SIGNING_SECRET'] = 'whsec_test_refund'
    os.environ['PAYMENT_TTL_MINUTES'] = '15'
    os.environ['DEFAULT_CURRENCY'] = 'usd'
    os.environ['EXTERNAL_CALL_TIMEOUT_SECONDS'] = '5'
    os.environ['FAN_OUT_CONCURRENCY'] = '4'


_early_setup_test_environment()
