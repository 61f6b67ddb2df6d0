# nativeflow/alerts.py
# Standalone notification function. Deployed on its own:
#   uvicorn nativeflow.alerts:app

import json
import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL
from .notifications import AlertError, dispatch_request

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

app = FastAPI(
    title="Native Flow Alerts",
    description="Emails the business owner about new bookings and contact messages",
    version="1.0.0",
)


@app.options("/send-alerts")
async def preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post("/send-alerts")
async def send_alerts(request: Request):
    try:
        payload = await request.json()
        result = dispatch_request(payload)
    except (AlertError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error("Error sending alert: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500, headers=CORS_HEADERS)

    return JSONResponse(result, status_code=200, headers=CORS_HEADERS)
