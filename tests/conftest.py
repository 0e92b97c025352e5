import os
import tempfile

# Must run before prep_api.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="ecet-prep-tests-")
os.environ["DB_DIR"] = _DB_DIR
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ.pop("ANTHROPIC_API_KEY", None)
