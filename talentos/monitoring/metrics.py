from prometheus_client import Counter, Histogram

REQUESTS = Counter("ta_api_requests_total", "Total API requests", ["endpoint", "method", "status"])
LATENCY = Histogram("ta_api_latency_seconds", "API latency seconds", ["endpoint"])
PIPELINE_MOVES = Counter("ta_pipeline_moves_total", "Cards moved between kanban columns", ["board", "stage"])
NOTIFICATIONS = Counter("ta_notifications_total", "Notifications recorded", ["type"])
