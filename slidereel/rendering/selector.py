"""
Renderer selection for SlideReel (rendering).

Picks the first available rendering backend from a priority list, falling back
to a designated default. Every selection creates a fresh strategy instance, so a
returned strategy is never shared between presentations.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

from loguru import logger

from slidereel.configs.config import Config, config
from slidereel.errors import NoRendererAvailable
from slidereel.rendering.interface import RenderingStrategy
from slidereel.rendering.libreoffice import LibreOfficeRenderingStrategy
from slidereel.rendering.msgraph import MSGraphRenderingStrategy
from slidereel.rendering.pptx_local import PptxRenderingStrategy

StrategyFactory = Callable[[], RenderingStrategy]


class RendererSelector:
    """Priority-ordered renderer selection with default fallback"""

    def __init__(
        self, factories: Mapping[str, StrategyFactory], default: str | None = None
    ) -> None:
        self._factories: dict[str, StrategyFactory] = {
            name.upper(): factory for name, factory in factories.items()
        }
        self.default = default.upper() if default else None
        if self.default and self.default not in self._factories:
            raise ValueError(f"Default renderer {self.default} is not registered")

    @property
    def registered(self) -> list[str]:
        return list(self._factories)

    def create(self, name: str) -> RenderingStrategy:
        """Create a fresh instance of the named backend."""
        key = name.upper()
        if key not in self._factories:
            raise KeyError(f"Unknown renderer: {name}")
        return self._factories[key]()

    def select(
        self, priority_list: Iterable[str], exclude: Iterable[str] = ()
    ) -> RenderingStrategy:
        excluded = {name.upper() for name in exclude}
        tried: list[str] = []

        for raw_name in priority_list:
            name = raw_name.strip().upper()
            if name in excluded or name in tried:
                continue
            if name not in self._factories:
                logger.warning(f"Unknown renderer in priority list: {raw_name}")
                continue
            tried.append(name)
            strategy = self._factories[name]()
            if strategy.is_available():
                logger.info(f"Selected renderer {name}")
                return strategy
            logger.debug(f"Renderer {name} is not available")

        default = self.default
        if default and default not in excluded and default not in tried:
            tried.append(default)
            strategy = self._factories[default]()
            if strategy.is_available():
                logger.info(f"Falling back to default renderer {default}")
                return strategy

        raise NoRendererAvailable(tried)

    def available_renderers(self) -> dict[str, bool]:
        availability: dict[str, bool] = {}
        for name, factory in self._factories.items():
            availability[name] = factory().is_available()
        return availability


def build_default_selector(settings: Config | None = None) -> RendererSelector:
    """Selector with the built-in backends; PPTX is the always-present default."""
    settings = settings or config
    factories: dict[str, StrategyFactory] = {
        MSGraphRenderingStrategy.name: lambda: MSGraphRenderingStrategy(settings),
        LibreOfficeRenderingStrategy.name: lambda: LibreOfficeRenderingStrategy(
            timeout=settings.soffice_timeout, dpi=settings.render_dpi
        ),
        PptxRenderingStrategy.name: PptxRenderingStrategy,
    }
    default = settings.default_renderer
    if default not in factories:
        logger.warning(
            f"Configured default renderer {default} is unknown, using PPTX instead"
        )
        default = PptxRenderingStrategy.name
    return RendererSelector(factories, default=default)
