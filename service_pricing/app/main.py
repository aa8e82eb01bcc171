"""
Pricing service for the Timberline storefront.
"""

from typing import Dict, Any
from datetime import datetime

from fastapi import Query

from shared.base_service import BaseService
from shared.errors import NotFoundError

from .catalog.models import (
    CalculationStrategy, CategoryCatalog, ConfigOption, SelectOption, SliderOption
)
from .catalog.tables import load_catalog
from .pricing.engine import PricingEngine, Quote
from .pricing.state import encode_config_state, decode_config_state
from .store.redis_store import ConfigurationStore
from .models import (
    QuoteRequest, QuoteResponse, PreviewResponse,
    ChoiceResponse, OptionResponse, CategoryResponse,
    SaveConfigurationRequest, SavedConfigurationResponse, SavedConfigurationListResponse
)


def option_response(option: ConfigOption) -> OptionResponse:
    """Convert a catalogue option to its API form."""
    response = OptionResponse(
        id=option.id,
        kind=option.kind.value,
        label=option.label,
        default_value=option.default_value,
        unit=getattr(option, "unit", None) or None
    )
    if isinstance(option, SelectOption):
        response.choices = [
            ChoiceResponse(
                value=choice.value,
                label=choice.label,
                image=choice.image,
                price_adjustment=choice.price_adjustment
            )
            for choice in option.choices
        ]
    elif isinstance(option, SliderOption):
        response.min = option.min
        response.max = option.max
        response.step = option.step
    return response


class PricingService(BaseService):
    """Pricing service implementation."""

    def __init__(self):
        super().__init__("pricing", 8021)

        self.catalogs = load_catalog()
        self.engine = PricingEngine(self.catalogs)
        self.store = ConfigurationStore(self.config.redis_url, self.config.store_ttl_seconds)

        for strategy in CalculationStrategy:
            self.metrics.set_gauge(
                "catalog_categories",
                sum(1 for c in self.catalogs.values() if c.strategy == strategy),
                strategy=strategy.value
            )

        self._setup_pricing_routes()

    def _quote_response(self, quote: Quote) -> QuoteResponse:
        return QuoteResponse(
            category=quote.category.value,
            price=quote.price,
            description=quote.description,
            purchasable=quote.purchasable,
            currency=self.config.currency,
            matched_rule=quote.matched_rule
        )

    def _quote(self, category: str, config: Dict[str, Any]) -> Quote:
        catalog = self.engine.get_catalog(category)
        with self.metrics.time_operation("price_quote_duration_seconds", category=catalog.category.value):
            quote = self.engine.quote(catalog.category, config)

        self.metrics.increment_counter(
            "price_quotes_total",
            category=quote.category.value,
            purchasable=str(quote.purchasable).lower()
        )
        return quote

    def _category_response(self, catalog: CategoryCatalog) -> CategoryResponse:
        return CategoryResponse(
            category=catalog.category.value,
            title=catalog.title,
            description=catalog.description,
            strategy=catalog.strategy.value,
            options=[option_response(option) for option in catalog.options],
            default_configuration=self.engine.default_configuration(catalog.category)
        )

    def _setup_pricing_routes(self):
        """Set up pricing-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "pricing",
                "message": "Timberline - Pricing Service",
                "version": "1.0.0",
                "capabilities": ["quotes", "descriptions", "previews", "saved_configurations"]
            }

        @self.app.get("/pricing/categories")
        async def list_categories():
            """List product categories and their pricing strategies."""
            return {
                "categories": [
                    {
                        "category": catalog.category.value,
                        "title": catalog.title,
                        "strategy": catalog.strategy.value,
                        "configurable": bool(catalog.options)
                    }
                    for catalog in self.catalogs.values()
                ]
            }

        @self.app.get("/pricing/categories/{category}", response_model=CategoryResponse)
        async def get_category(category: str):
            """Options and default configuration of a category."""
            return self._category_response(self.engine.get_catalog(category))

        @self.app.post("/pricing/quote", response_model=QuoteResponse)
        async def quote(request: QuoteRequest):
            """Price and describe a configuration."""
            return self._quote_response(self._quote(request.category, request.config))

        @self.app.post("/pricing/preview", response_model=PreviewResponse)
        async def create_preview(request: QuoteRequest):
            """Quote a configuration and return a token for the preview page."""
            quote = self._quote(request.category, request.config)
            return PreviewResponse(
                **self._quote_response(quote).model_dump(),
                token=encode_config_state(request.config),
                config=request.config
            )

        @self.app.get("/pricing/preview/{token}", response_model=PreviewResponse)
        async def read_preview(token: str, category: str = Query(..., description="Product category")):
            """Decode a preview token and re-quote it."""
            config = decode_config_state(token)
            quote = self._quote(category, config)
            return PreviewResponse(
                **self._quote_response(quote).model_dump(),
                token=token,
                config=config
            )

        @self.app.get("/pricing/stats")
        async def get_stats():
            """Get pricing engine statistics."""
            return {
                "engine": self.engine.get_engine_stats(),
                "timestamp": datetime.now().isoformat()
            }

        @self.app.post("/configurations", response_model=SavedConfigurationResponse, status_code=201)
        async def save_configuration(request: SaveConfigurationRequest):
            """Save a named configuration with its price computed now."""
            quote = self._quote(request.category, request.config)
            document = await self.store.save_configuration(
                user_id=request.user_id,
                category=quote.category.value,
                config=request.config,
                price=quote.price,
                description=quote.description,
                name=request.name
            )
            self.metrics.record_business_event("configuration_saved")
            return SavedConfigurationResponse.from_document(document)

        @self.app.get("/configurations", response_model=SavedConfigurationListResponse)
        async def list_configurations(user_id: str = Query(..., description="Owner of the configurations")):
            """Saved configurations of a user, newest first."""
            documents = await self.store.list_configurations(user_id)
            return SavedConfigurationListResponse(
                configurations=[SavedConfigurationResponse.from_document(d) for d in documents],
                total=len(documents)
            )

        @self.app.get("/configurations/{config_id}", response_model=SavedConfigurationResponse)
        async def get_configuration(config_id: str):
            """Get a saved configuration."""
            document = await self.store.get_configuration(config_id)
            if document is None:
                raise NotFoundError("Configuration", config_id)
            return SavedConfigurationResponse.from_document(document)

        @self.app.delete("/configurations/{config_id}")
        async def delete_configuration(config_id: str):
            """Delete a saved configuration."""
            if not await self.store.delete_configuration(config_id):
                raise NotFoundError("Configuration", config_id)
            return {"success": True, "message": "Configuration deleted successfully"}

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check pricing service dependencies."""
        return {"redis": "ok" if await self.store.health_check() else "error"}

    async def start(self):
        """Start pricing service components."""
        await self.store.start()
        self.logger.info("Pricing service started", categories=len(self.catalogs))

    async def stop(self):
        """Stop pricing service components."""
        await self.store.stop()
        self.logger.info("Pricing service stopped")


def create_app():
    """Create pricing service application."""
    service = PricingService()
    return service.app


if __name__ == "__main__":
    service = PricingService()
    service.run()
