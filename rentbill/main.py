import logging
import sys

import uvicorn
from fastapi import FastAPI

from rentbill.config import config
from rentbill.handlers import invoices, payments, bills
from rentbill.middlewares.error import setup_exception_handlers


def setup_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        stream=sys.stdout,
    )


def create_app() -> FastAPI:
    app = FastAPI(title="House Rent Billing API")

    # Exception handlers first, so every router's errors are mapped
    setup_exception_handlers(app)

    # Router registration
    app.include_router(invoices.router)
    app.include_router(payments.router)
    app.include_router(bills.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    setup_logging()
    logging.info(f"Starting billing API on {config.API_HOST}:{config.API_PORT} ({config.APP_ENV})")
    try:
        uvicorn.run(app, host=config.API_HOST, port=config.API_PORT, log_config=None)
    except (KeyboardInterrupt, SystemExit):
        logging.info("Billing API stopped.")
