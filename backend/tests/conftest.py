import os
import sys
from pathlib import Path


# Keep tests deterministic and local-only.
os.environ["QBADMIN_SKIP_DOTENV"] = "1"
os.environ["QBADMIN_ENV"] = "test"
os.environ["QBADMIN_API_BASE_URL"] = "http://backend.test/api"
os.environ["QBADMIN_API_TIMEOUT_SECONDS"] = "5"
os.environ["QBADMIN_DEFAULT_PAGE_SIZE"] = "10"
os.environ["QBADMIN_LOG_LEVEL"] = "WARNING"

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

TEST_TOKEN_PATH = BACKEND_ROOT / "test_qbadmin_tokens.json"
os.environ["QBADMIN_TOKEN_FILE"] = str(TEST_TOKEN_PATH)
if TEST_TOKEN_PATH.exists():
    TEST_TOKEN_PATH.unlink()
