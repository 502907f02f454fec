"""
Vercel entry point for the Campusdesk API
"""
import os

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("UPLOAD_DIR", "/tmp/uploads")

from mangum import Mangum
from campusdesk.main import app, init_services

# Lifespan is disabled for serverless, so build services eagerly
init_services(app)

# Lambda handler for ASGI app
handler = Mangum(app, lifespan="off")
