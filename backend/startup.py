"""Launcher for the Workflow Builder API.

Checks the engine configuration from the environment before serving, so a bad
WORKFLOW_FAILURE_POLICY or delay value stops the process with a clear message
instead of failing on the first run.
"""

import os
import sys
import traceback


def _load_config():
    from app.config import WorkflowConfig

    try:
        return WorkflowConfig.from_env()
    except ValueError as e:
        print(f"[startup] FATAL: invalid workflow configuration: {e}", flush=True)
        sys.exit(1)


def main():
    port = int(os.environ.get("APP_PORT", "8000"))
    config = _load_config()
    print(f"[startup] Python {sys.version.split()[0]}, port {port}", flush=True)
    print(
        f"[startup] Storage: {'postgres' if os.environ.get('PGHOST') else '~/.flowbuilder'}",
        flush=True,
    )
    if config.is_configured:
        print(
            f"[startup] Model serving: {config.host} "
            f"(text={config.text_endpoint}, image={config.image_endpoint or 'none'})",
            flush=True,
        )
    else:
        print("[startup] Model serving: DATABRICKS_HOST not set, AI nodes will fail", flush=True)
    print(
        f"[startup] Engine: failure_policy={config.failure_policy.value}, "
        f"node_delay={config.node_delay_seconds}s",
        flush=True,
    )

    try:
        from app.main import app
    except Exception:
        print("[startup] FATAL: could not import the API:", flush=True)
        traceback.print_exc()
        sys.exit(1)

    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    main()
