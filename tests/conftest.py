import io
import os
import sys
import time
import subprocess
import requests
import socket
from contextlib import closing

# Ensure project root is in path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from healthai.main import app
from healthai.dal.form_repo import form_repo

def find_free_port():
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]

@pytest.fixture(autouse=True)
def clean_form_repo():
    """Every test starts with no session state."""
    form_repo._storage.clear()
    yield
    form_repo._storage.clear()

@pytest.fixture
def client():
    """
    Test client for the FastAPI app.
    """
    return TestClient(app)

@pytest.fixture
def session_client(client):
    """Test client with a fixed session cookie."""
    client.cookies.set("session_id", "test-session-001")
    return client

@pytest.fixture
def png_bytes():
    img = Image.new('RGB', (320, 200), color='blue')
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()

@pytest.fixture
def valid_form():
    return {
        "name": "Jane Doe",
        "age": "34",
        "gender": "Female",
        "weight": "62.5",
        "weightUnit": "kg",
        "height": "",
        "heightUnit": "",
        "symptoms": [
            {"name": "Headache", "severity": "Moderate"},
            {"name": "Fever", "severity": "Mild"},
        ],
        "medicalHistory": {
            "pastConditions": "Asthma, , Diabetes ",
            "currentMedications": "",
        },
    }

@pytest.fixture(scope="session")
def test_server():
    """
    Starts a uvicorn server in a subprocess for E2E tests.
    Yields the base URL (e.g., http://127.0.0.1:8001).
    """
    port = find_free_port()
    host = "127.0.0.1"
    base_url = f"http://{host}:{port}"
    env = os.environ.copy()
    env["PYTHONPATH"] = PROJECT_ROOT # Ensure standard imports work
    # The server must never reach the real inference service from tests
    env.pop("GOOGLE_GENAI_API_KEY", None)
    env.pop("GOOGLE_API_KEY", None)

    log_path = f"/tmp/test_server_{port}.log"
    log_file = open(log_path, "w")
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "healthai.main:app", "--host", host, "--port", str(port)],
        env=env,
        stdout=log_file,
        stderr=subprocess.STDOUT,
        cwd=PROJECT_ROOT # Start from project root
    )

    # Health check loop
    start_time = time.time()
    while time.time() - start_time < 10:
        try:
            resp = requests.get(f"{base_url}/api/health")
            if resp.status_code == 200:
                break
        except requests.ConnectionError:
            time.sleep(0.1)
    else:
        # Timeout
        print(f"Server failed to start. Logs in {log_path}")
        proc.kill()
        log_file.close()
        raise RuntimeError("Test server failed to start")

    yield base_url

    # Teardown
    proc.terminate()
    try:
        proc.wait(timeout=2)
    except subprocess.TimeoutExpired:
        proc.kill()

    log_file.close()

    with open(log_path, "r") as f:
        print(f"\n--- TEST SERVER LOGS ({port}) ---\n")
        print(f.read())
        print(f"\n--- END LOGS ---\n")

    if os.path.exists(log_path):
        os.remove(log_path)
