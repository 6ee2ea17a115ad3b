# app/infra/banregio/browser.py
import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from app.core.errors import UpstreamUnavailable
from app.domain.entities.rates import RateQuote
from app.infra.banregio.base import BROWSER_HEADERS, RateStrategy
from app.infra.banregio.parser import parse_rates_table

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


@asynccontextmanager
async def browser_page(
    playwright_factory: Callable[[], Any] = async_playwright,
    headless: bool = True,
) -> AsyncIterator[Any]:
    """Abre chromium + contexto + página y los cierra siempre, en orden inverso.

    Cualquier excepción dentro del ``async with`` (navegación, selectores,
    timeouts) pasa por aquí antes de propagarse, así que ningún proceso de
    chromium queda vivo.
    """
    async with AsyncExitStack() as stack:
        pw = await stack.enter_async_context(playwright_factory())
        browser = await pw.chromium.launch(headless=headless, args=CHROMIUM_ARGS)
        stack.push_async_callback(browser.close)
        context = await browser.new_context(
            user_agent=BROWSER_HEADERS["User-Agent"],
            locale="es-MX",
        )
        stack.push_async_callback(context.close)
        page = await context.new_page()
        stack.push_async_callback(page.close)
        yield page


class HeadlessBrowserStrategy(RateStrategy):
    """Renderiza la página con Playwright y lee la tabla ya poblada por JS."""

    name = "browser"

    def __init__(
        self,
        url: str,
        max_concurrency: int = 2,
        headless: bool = True,
        navigation_timeout_ms: int = 60000,
        playwright_factory: Callable[[], Any] = async_playwright,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.url = url
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.playwright_factory = playwright_factory
        # cada sesión es un proceso chromium; limitamos cuántos viven a la vez
        self._slots = asyncio.Semaphore(max_concurrency)

    async def _render(self) -> str:
        async with browser_page(self.playwright_factory, headless=self.headless) as page:
            logger.info(f"🌐 Cargando {self.url} en navegador headless...")
            await page.goto(self.url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
            await page.wait_for_selector("td:has-text('$')", timeout=10000)
            return await page.content()

    async def fetch(self) -> Dict[str, RateQuote]:
        async with self._slots:
            try:
                html = await self._render()
            except PlaywrightError as e:
                raise UpstreamUnavailable(f"Navegador falló: {e}", strategy=self.name) from e

        tasas = parse_rates_table(html)
        if not tasas:
            raise UpstreamUnavailable("No se encontró la tabla de divisas renderizada", strategy=self.name)
        return self._quotes(tasas)
