"""FastAPI application entrypoint."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from newsharvest.api.routes import router

INDEX_HTML = """
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>newsharvest</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
        background: #f6f4ef;
        color: #2f3a45;
      }

      main {
        max-width: 880px;
        margin: 0 auto;
        padding: 40px 24px;
        display: grid;
        gap: 20px;
      }

      form {
        display: flex;
        gap: 12px;
      }

      input {
        flex: 1;
        padding: 12px 14px;
        border-radius: 10px;
        border: 1px solid #c9c3b6;
        font-size: 1rem;
      }

      button {
        border: none;
        border-radius: 10px;
        padding: 12px 20px;
        font-weight: 600;
        background: #2f6f8f;
        color: white;
        cursor: pointer;
      }

      pre {
        background: white;
        border-radius: 12px;
        padding: 16px;
        overflow-x: auto;
        white-space: pre-wrap;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>newsharvest</h1>
      <p>Paste an article URL to extract its title, authors, date and text.</p>
      <form id="extract-form">
        <input id="article-url" type="url" placeholder="https://example.com/news/some-story" required />
        <button type="submit">Extract</button>
      </form>
      <pre id="result">No article extracted yet.</pre>
    </main>
    <script>
      const form = document.getElementById("extract-form");
      const output = document.getElementById("result");

      form.addEventListener("submit", async (event) => {
        event.preventDefault();
        output.textContent = "Extracting...";
        const url = document.getElementById("article-url").value;
        try {
          const response = await fetch("/api/extract", {
            method: "POST",
            headers: { "Content-Type": "application/json" },
            body: JSON.stringify({ url }),
          });
          const payload = await response.json();
          output.textContent = JSON.stringify(payload, null, 2);
        } catch (error) {
          output.textContent = `Request failed: ${error}`;
        }
      });
    </script>
  </body>
</html>
"""


def create_app() -> FastAPI:
    app = FastAPI(title="newsharvest", description="News article extraction and site crawling API")
    app.include_router(router, prefix="/api")

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return INDEX_HTML

    return app


app = create_app()
