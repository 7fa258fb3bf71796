"""Application constants."""

USER_AGENT = "wqp-harvest/0.3 (+water-quality research; contact: configured-email)"
WQP_RESULTS_URL = "https://www.waterqualitydata.us/data/Result/search"
SITE_ID_FIELD = "MonitoringLocationIdentifier"
LATITUDE_FIELD = "LatitudeMeasure"
LONGITUDE_FIELD = "LongitudeMeasure"
COMMANDS = (
    "check-ids",
    "fetch",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "download_grp",
    "event",
    "status",
    "attempt",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
