import sys
import uvicorn

from hrms.core.config import settings

def run_http(port: int = 8000):
    """Run the API server"""
    print(f"Starting HRMS server on port {port}...")
    uvicorn.run(
        "hrms.main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG,
        log_config=None,
    )

if __name__ == "__main__":
    port = 8000
    if "--port" in sys.argv:
        port = int(sys.argv[sys.argv.index("--port") + 1])
    run_http(port)
