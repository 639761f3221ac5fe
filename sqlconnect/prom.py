from prometheus_client import CollectorRegistry

# Private registry, kept apart from the process default
REGISTRY = CollectorRegistry()
