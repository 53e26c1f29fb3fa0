import os
import tempfile

import pytest

# Configure before any app module is imported: database.py picks its engine
# and ai/app.py builds its client at import time.
_TMP_DIR = tempfile.mkdtemp(prefix="doc-insight-tests-")
os.environ["SQLITE_PATH"] = os.path.join(_TMP_DIR, "analysis.db")
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["DATABASE_URL"] = ""
os.environ["GOOGLE_API_KEY"] = ""
os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = ""


@pytest.fixture(scope="session")
def upload_dir():
    return os.environ["UPLOAD_DIR"]


@pytest.fixture
def client():
    # Import lazily so the environment above is in place first
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def sample_report():
    return """# AI Analysis Report

## 📁 Processed Files
- guide.txt

## 📊 File Statistics
- File count: 1
- Total characters: 420

## 🎯 Smart Summary
The guide introduces a core cleaning method. It was written last spring.

## 🔍 Key Points
• Read the documents in detail for more information

## 🏷️ Core Keywords
pipeline • cleaning • data • schema • validation

## 📈 Content Categories
📊 Data Analysis

---
*🤖 Report generated by local heuristic summarizer | Generated at: 2024-05-01 10:00:00*"""
