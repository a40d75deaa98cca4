import os

os.environ.setdefault('POWERTOOLS_METRICS_NAMESPACE', 'GiftSuggestionsTest')
os.environ.setdefault('POWERTOOLS_SERVICE_NAME', 'gift-suggestions')
os.environ.setdefault('POWERTOOLS_TRACE_DISABLED', 'true')
