"""AI Query Gateway Layer.

Dispatches a single logical prompt to one or more LLM providers with:
  - Vendor-Specific Adapters (OpenAI, Anthropic, Google wire protocols)
  - Health Registry (credential presence + last outcome per provider)
  - Single-Query Executor (bounded timeout, uniform error classification)
  - Optional bounded retry layer (exponential backoff with jitter)
  - Fan-out Aggregator (concurrent dispatch, ordered results, primary pick)
  - Gateway Facade (caller-facing API)
"""
