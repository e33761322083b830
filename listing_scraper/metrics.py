"""Prometheus metrics for the listing scraper."""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("listing_scraper", "Listing scraper application info")
app_info.info({"version": "0.1.0", "name": "listing-scraper"})

# Job metrics
scrape_jobs_total = Counter(
    "scrape_jobs_total",
    "Total number of scrape jobs that reached a terminal state",
    ["platform", "status"],
)

active_scrape_jobs = Gauge(
    "active_scrape_jobs",
    "Number of scrape jobs currently running",
    ["platform"],
)

# Page metrics
pages_scraped_total = Counter(
    "pages_scraped_total",
    "Total number of result pages extracted",
    ["platform"],
)

page_scrape_duration_seconds = Histogram(
    "page_scrape_duration_seconds",
    "Time spent on one result page (readiness wait, scroll and extraction)",
    ["platform"],
    buckets=[1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
)

navigation_errors_total = Counter(
    "navigation_errors_total",
    "Total number of navigation failures",
    ["platform", "stage"],
)

readiness_timeouts_total = Counter(
    "readiness_timeouts_total",
    "Pages where no readiness locator appeared before timing out",
    ["platform"],
)

# Extraction metrics
products_extracted_total = Counter(
    "products_extracted_total",
    "Total number of product records extracted",
    ["platform"],
)

candidates_skipped_total = Counter(
    "candidates_skipped_total",
    "Result nodes dropped before a record was built",
    ["platform", "reason"],
)
