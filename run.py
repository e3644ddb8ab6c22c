#!/usr/bin/env python3
"""Main application file for the Flask app."""

import sys

from app.factory import create_app
from app.helpers.database import perform_health_checks

app = create_app()


def run_health_checks():
    """Run the health checks."""
    with app.app_context():
        errors = perform_health_checks()
        if errors:
            sys.exit(f"Startup checks failed: {errors}")


# health check route
@app.route("/health")
def health():
    """Serve the health check route.

    Returns
    -------
        string: the health check status
    """
    checks = perform_health_checks()
    if checks:
        return {"errors": checks}, 500
    return "OK", 200


if __name__ == "__main__":
    run_health_checks()
    app.run(host="0.0.0.0", port=5000)
