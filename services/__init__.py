"""
Services package for the BasketBridge board dashboard.
Provides business logic separation from UI components.
"""

from .error_handling_service import (
    ErrorHandlingService,
    ErrorCategory,
    QueryError,
    InvalidInputError,
    MethodNotAllowedError,
    ConfigurationMissingError,
    UpstreamError,
    InternalError,
    InvalidParameterError,
    DatasetValidationError,
)
from .config_service import ConfigService, AzureOpenAISettings, get_config
from .comparison_service import ComparisonService
from .metrics_data_service import (
    MetricsDataService,
    MetricSet,
    CategoryMixEntry,
    HierarchyNode,
    GroceryDataset,
)
from .aggregation_service import AggregationService, DerivedView, CategoryIncidence, HierarchyRow
from .scenario_service import ScenarioService, ScenarioResult
from .data_formatting_service import DataFormattingService
from .prompt_builder_service import (
    PromptBuilderService,
    PROMPT_DEFAULTS,
    build_system_prompt,
    merge_kpi_defaults,
)
from .ai_service import AIService, QueryResult, QueryState
from .insight_service import InsightService, KpiCard
from .access_service import AccessService

__all__ = [
    'ErrorHandlingService',
    'ErrorCategory',
    'QueryError',
    'InvalidInputError',
    'MethodNotAllowedError',
    'ConfigurationMissingError',
    'UpstreamError',
    'InternalError',
    'InvalidParameterError',
    'DatasetValidationError',
    'ConfigService',
    'AzureOpenAISettings',
    'get_config',
    'ComparisonService',
    'MetricsDataService',
    'MetricSet',
    'CategoryMixEntry',
    'HierarchyNode',
    'GroceryDataset',
    'AggregationService',
    'DerivedView',
    'CategoryIncidence',
    'HierarchyRow',
    'ScenarioService',
    'ScenarioResult',
    'DataFormattingService',
    'PromptBuilderService',
    'PROMPT_DEFAULTS',
    'build_system_prompt',
    'merge_kpi_defaults',
    'AIService',
    'QueryResult',
    'QueryState',
    'InsightService',
    'KpiCard',
    'AccessService',
]
