import os
import tempfile

# Settings are read at import time by database.py; keep test runs off ./data
# and away from any real insights provider.
os.environ.setdefault("FINANCE_DATA_DIR", tempfile.mkdtemp(prefix="finance-tests-"))
os.environ["FINANCE_INSIGHTS_API_KEY"] = ""
