from mangum import Mangum

from lms_reminders.main import app

# ASGI handler for serverless deploys; the platform's cron hits /api/cron/reminders
# instead of the in-process scheduler, so lifespan stays off
handler = Mangum(app, lifespan="off")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
