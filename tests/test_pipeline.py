"""
Tests for the listing and cost calculation flows.
"""
from decimal import Decimal

import pytest

from llm_pricing.core.catalog import Model, PricingRecord
from llm_pricing.core.errors import InvalidPriceError, SortScopeError, UnsupportedTTLError
from llm_pricing.core.pipeline import (
    CalculationResult,
    ListingResult,
    RunConfig,
    build_calculation,
    build_listing,
    run,
    validate_config,
)
from llm_pricing.core.pricing import UsageScenario
from llm_pricing.core.sorting import SortKey, SortSpec


class TestPipeline:
    """Test pipeline functionality."""

    def create_test_model(
        self,
        model_id="acme/foo",
        prompt="0.000002",
        completion="0.000004",
        name=None,
        **pricing
    ) -> Model:
        """Create a test model."""
        return Model(
            id=model_id,
            name=name,
            pricing=PricingRecord(prompt=prompt, completion=completion, **pricing)
        )

    def create_catalog(self):
        """Create a small multi-provider catalog."""
        return [
            self.create_test_model("openai/gpt-4o", prompt="0.0000025", completion="0.00001"),
            self.create_test_model("anthropic/claude-3-haiku", prompt="0.00000025", completion="0.00000125",
                                   input_cache_read="0.00000003", input_cache_write="0.0000003"),
            self.create_test_model("openai/gpt-4o-mini", prompt="0.00000015", completion="0.0000006"),
            self.create_test_model("anthropic/claude-3-opus", prompt="0.000015", completion="0.000075",
                                   input_cache_read="0.0000015", input_cache_write="0.00001875"),
        ]

    def test_listing_groups_by_provider(self):
        """Test listing without filters or sort."""
        result = build_listing(self.create_catalog(), RunConfig())

        assert isinstance(result, ListingResult)
        assert not result.is_empty
        assert set(result.groups) == {"openai", "anthropic"}
        assert [m.id for m in result.groups["openai"]] == ["openai/gpt-4o", "openai/gpt-4o-mini"]
        assert len(result.models) == 4

    def test_listing_with_filters(self):
        """Test listing with a filter."""
        result = build_listing(self.create_catalog(), RunConfig(filters=["CLAUDE"]))

        assert list(result.groups) == ["anthropic"]
        assert [m.id for m in result.models] == ["anthropic/claude-3-haiku", "anthropic/claude-3-opus"]

    def test_listing_no_matches_is_empty(self):
        """Test listing with a filter that matches nothing."""
        result = build_listing(self.create_catalog(), RunConfig(filters=["nothing"]))

        assert result.is_empty
        assert result.models == []

    def test_listing_sorted_before_grouping(self):
        """Test sort is applied before grouping."""
        config = RunConfig(sort=SortSpec(SortKey.INPUT_PRICE))
        result = build_listing(self.create_catalog(), config)

        # Cheapest first within each provider, providers by first appearance
        assert list(result.groups) == ["openai", "anthropic"]
        assert [m.id for m in result.groups["openai"]] == ["openai/gpt-4o-mini", "openai/gpt-4o"]
        assert [m.id for m in result.models] == [
            "openai/gpt-4o-mini",
            "openai/gpt-4o",
            "anthropic/claude-3-haiku",
            "anthropic/claude-3-opus",
        ]

    def test_listing_rejects_total_sort(self):
        """Test total sort is a configuration error when listing."""
        config = RunConfig(sort=SortSpec(SortKey.TOTAL))
        with pytest.raises(SortScopeError):
            build_listing(self.create_catalog(), config)

    def test_listing_rejects_scenario(self):
        """Test the listing flow refuses a usage scenario."""
        config = RunConfig(scenario=UsageScenario(input_tokens=1, output_tokens=1))
        with pytest.raises(ValueError):
            build_listing(self.create_catalog(), config)

    def test_end_to_end_calculation(self):
        """Test the single-model calculation scenario."""
        catalog = [self.create_test_model("acme/foo")]
        config = RunConfig(scenario=UsageScenario(input_tokens=1000, output_tokens=500))

        result = build_calculation(catalog, config)

        assert isinstance(result, CalculationResult)
        assert not result.caching_requested
        assert len(result.rows) == 1
        costs = result.rows[0].breakdown
        assert costs.input_cost == Decimal("0.002")
        assert costs.output_cost == Decimal("0.002")
        assert costs.total_cost == Decimal("0.004")

    def test_calculation_rows_follow_groups(self):
        """Test rows are produced in grouped order."""
        config = RunConfig(scenario=UsageScenario(input_tokens=10, output_tokens=10))
        result = build_calculation(self.create_catalog(), config)

        assert [r.model.id for r in result.rows] == [
            "openai/gpt-4o",
            "openai/gpt-4o-mini",
            "anthropic/claude-3-haiku",
            "anthropic/claude-3-opus",
        ]

    def test_calculation_sorted_by_total(self):
        """Test total sort runs after every row is priced."""
        config = RunConfig(
            sort=SortSpec(SortKey.TOTAL, descending=True),
            scenario=UsageScenario(input_tokens=1000, output_tokens=1000)
        )
        result = build_calculation(self.create_catalog(), config)

        totals = [r.breakdown.total_cost for r in result.rows]
        assert totals == sorted(totals, reverse=True)
        assert result.rows[0].model.id == "anthropic/claude-3-opus"
        assert result.rows[-1].model.id == "openai/gpt-4o-mini"

    def test_calculation_zero_cached_flags_caching(self):
        """Test explicit zero cached tokens still selects the cache layout."""
        config = RunConfig(scenario=UsageScenario(input_tokens=10, output_tokens=10, cached_tokens=0))
        result = build_calculation(self.create_catalog(), config)

        assert result.caching_requested

    def test_calculation_unsupported_ttl(self):
        """Test unsupported TTL fails before pricing any model."""
        catalog = [self.create_test_model(prompt="broken")]
        config = RunConfig(scenario=UsageScenario(input_tokens=10, output_tokens=10, cached_tokens=5, ttl_minutes=10))

        with pytest.raises(UnsupportedTTLError):
            build_calculation(catalog, config)

    def test_calculation_invalid_price_is_fatal(self):
        """Test a bad required price fails the whole calculation."""
        catalog = self.create_catalog() + [self.create_test_model("bad/model", completion="??")]
        config = RunConfig(scenario=UsageScenario(input_tokens=10, output_tokens=10))

        with pytest.raises(InvalidPriceError):
            build_calculation(catalog, config)

    def test_calculation_filtered_out_bad_price_is_ignored(self):
        """Test models removed by filters are never priced."""
        catalog = self.create_catalog() + [self.create_test_model("bad/model", completion="??")]
        config = RunConfig(filters=["openai/"], scenario=UsageScenario(input_tokens=10, output_tokens=10))

        result = build_calculation(catalog, config)
        assert len(result.rows) == 2

    def test_calculation_no_matches_is_empty(self):
        """Test a calculation with nothing to price."""
        config = RunConfig(filters=["nothing"], scenario=UsageScenario(input_tokens=10, output_tokens=10))
        result = build_calculation(self.create_catalog(), config)

        assert result.is_empty

    def test_calculation_requires_scenario(self):
        """Test calculation without a scenario is rejected."""
        with pytest.raises(ValueError):
            build_calculation(self.create_catalog(), RunConfig())

    def test_validate_config(self):
        """Test configuration checks run without a catalog."""
        validate_config(RunConfig(sort=SortSpec(SortKey.NAME)))
        validate_config(RunConfig(
            sort=SortSpec(SortKey.TOTAL),
            scenario=UsageScenario(input_tokens=1, output_tokens=1, ttl_minutes=60)
        ))
        with pytest.raises(SortScopeError):
            validate_config(RunConfig(sort=SortSpec(SortKey.TOTAL)))
        with pytest.raises(UnsupportedTTLError):
            validate_config(RunConfig(scenario=UsageScenario(input_tokens=1, output_tokens=1, ttl_minutes=30)))

    def test_run_dispatches_on_scenario(self):
        """Test run picks the flow from the config."""
        catalog = self.create_catalog()

        assert isinstance(run(catalog, RunConfig()), ListingResult)
        scenario = UsageScenario(input_tokens=1, output_tokens=1)
        assert isinstance(run(catalog, RunConfig(scenario=scenario)), CalculationResult)
