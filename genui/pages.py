from __future__ import annotations

from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route

LOGIN_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>GenerateUI Login</title>
    <style>
      body {
        margin: 0;
        min-height: 100vh;
        display: grid;
        place-items: center;
        background: #f3e8ff;
        color: #2a1b3d;
        font-family: Georgia, serif;
      }
      main {
        background: #ffffff;
        padding: 48px;
        border-radius: 24px;
        width: min(420px, 90vw);
        text-align: center;
      }
      a.button {
        display: block;
        text-decoration: none;
        padding: 14px 18px;
        border-radius: 14px;
        margin-bottom: 12px;
        font-weight: 600;
      }
      a.primary { background: #7c3aed; color: #ffffff; }
      a.secondary { background: #f5e9ff; color: #5b21b6; }
      .footer { margin-top: 24px; font-size: 14px; color: #6b5b7a; }
    </style>
  </head>
  <body>
    <main>
      <h1>GenerateUI Login</h1>
      <p>Continue with your preferred provider.</p>
      <a class="button primary" id="github" href="#">Continue with GitHub</a>
      <a class="button secondary" id="google" href="#">Continue with Google</a>
      <div class="footer">After login you can close this window.</div>
    </main>
    <script>
      const params = new URLSearchParams(window.location.search);
      const redirectUri = params.get("redirect_uri") || "";
      const apiBase = params.get("api_base") || "";
      for (const provider of ["github", "google"]) {
        const link = document.getElementById(provider);
        if (redirectUri && apiBase) {
          link.href = apiBase + "/auth/" + provider + "?redirect_uri=" +
            encodeURIComponent(redirectUri);
        }
      }
    </script>
  </body>
</html>
"""


async def login_page(request: Request) -> Response:
    del request
    return HTMLResponse(LOGIN_HTML)


def login_route() -> Route:
    return Route("/", login_page, methods=["GET"])
