from __future__ import annotations

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from auth.flow import AuthFlowController
from auth.me import me_route
from auth.providers import PROVIDER_CLASSES, ProviderAdapter
from auth.signer import Signer
from genui.constants import APP_VERSION, LOGGER
from genui.env import Settings, load_env, setup_logging, validate_env
from genui.pages import login_route


def build_providers(settings: Settings) -> dict[str, ProviderAdapter]:
    credentials = {
        "github": (settings.github_client_id, settings.github_client_secret),
        "google": (settings.google_client_id, settings.google_client_secret),
    }
    return {
        name: provider_cls(
            *credentials[name],
            timeout=settings.provider_timeout,
        )
        for name, provider_cls in PROVIDER_CLASSES.items()
    }


def health_route(providers: dict[str, ProviderAdapter]) -> Route:
    async def handle_health(request: Request) -> Response:
        del request
        return JSONResponse(
            {
                "status": "ok",
                "version": APP_VERSION,
                "providers": {
                    name: provider.is_configured for name, provider in providers.items()
                },
            }
        )

    return Route("/health", handle_health, methods=["GET"])


def create_app(
    settings: Settings | None = None,
    *,
    providers: dict[str, ProviderAdapter] | None = None,
) -> Starlette:
    if settings is None:
        load_env()
        setup_logging()
        settings = validate_env()

    signer = Signer(settings.jwt_secret)
    providers = providers if providers is not None else build_providers(settings)
    controller = AuthFlowController(
        public_url=settings.public_url,
        signer=signer,
        providers=providers,
        session_lifetime_seconds=settings.session_lifetime_seconds,
    )

    routes = [
        login_route(),
        health_route(providers),
        me_route(signer),
        *controller.routes(),
    ]
    app = Starlette(routes=routes)
    app.state.settings = settings
    app.state.auth_flow = controller
    return app


def main() -> None:
    import uvicorn

    load_env()
    setup_logging()
    settings = validate_env()
    app = create_app(settings)
    LOGGER.info("GenerateUI auth API listening on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
