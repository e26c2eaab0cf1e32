from memory_profiler import profile
from toolshare.main import app
from fastapi.testclient import TestClient

# Create a test client for the FastAPI app
client = TestClient(app)


@profile
def run_scenario():
    """
    Exercise the public read endpoints while tracking memory.

    Nothing is asserted; run with ``python profile_memory.py`` and read the
    line-by-line report.
    """
    client.get("/health")
    client.get("/categories")
    tools = client.get("/tools").json()
    for tool in tools[:20]:
        client.get(f"/tools/{tool['id']}")
        client.get(f"/tools/{tool['id']}/availability")


if __name__ == "__main__":
    run_scenario()
