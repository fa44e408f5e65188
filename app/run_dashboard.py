# app/run_dashboard.py
import asyncio, signal
import contextlib
import uvicorn

from utils.config import load_cfg
from utils.logger import logger, configure_logging
from infra import HttpContainer
from billing.config import DashboardSettings
from billing.services.account_service import AccountService
from billing.services.order_service import OrderService
from billing.app.controller import ReconciliationController
from billing.app.dashboard_api import build_app


async def main():
    cfg = load_cfg()
    configure_logging(cfg.get("logging"))
    settings = DashboardSettings.from_cfg(cfg)

    container = await HttpContainer.start(cfg, base_url=settings.api_base)
    controller = ReconciliationController(
        settings,
        AccountService(container.http),
        OrderService(container.http),
    )
    await controller.start()

    app = build_app(controller)
    server = uvicorn.Server(
        uvicorn.Config(app, host=cfg.get("control", {}).get("host", "127.0.0.1"),
                            port=int(cfg.get("control", {}).get("port", 8090)),
                            loop="asyncio",
                            lifespan="off",
                            timeout_keep_alive=10,
                            log_config=None,
                            access_log=False)
    )

    http_task = asyncio.create_task(server.serve(), name="http")
    stop_event = asyncio.Event()

    def _graceful(*_):
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _graceful)
        except NotImplementedError:
            pass  # Windows

    logger.info(f"Dashboard up: api_base={settings.api_base} user={settings.user_id}")
    await stop_event.wait()
    await controller.stop()
    server.should_exit = True
    with contextlib.suppress(asyncio.CancelledError):
        await http_task
    await container.stop()

if __name__ == "__main__":
    asyncio.run(main())
