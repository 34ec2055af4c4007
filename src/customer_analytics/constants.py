"""Configuration constants for the customer analysis."""

# Number of buckets in both quantile schemes
QUANTILE_COUNT = 40

# Share of the population per rank bucket and in the top-customer table
TOP_FRACTION = 0.025

# Only purchase events count towards sales
PURCHASE_EVENT_TYPE = 6

# Events before this timestamp are ignored
EVENTS_SINCE = "2020-04-01 00:00:00"

DEFAULT_DATABASE_URL = "sqlite:///customer_analytics.db"

TOP_TABLE_PREFIX = "top_customers"

# Column names shared by the analysis frames
CUSTOMER_ID = "customer_id"
CONTENT_ID = "content_id"
QUANTITY = "quantity"
PRICE = "price"
INFO = "info"
TOTAL_SALES = "total_sales"
RANK = "rank"

BUCKET = "bucket"
QUANTILE_RANGE = "quantile_range"
NUMBER_OF_CUSTOMERS = "number_of_customers"
MAX_SALES = "max_sales"

EVENT_COLUMNS = [CUSTOMER_ID, CONTENT_ID, QUANTITY]
CUSTOMER_SALES_COLUMNS = [CUSTOMER_ID, INFO, TOTAL_SALES]
QUANTILE_COLUMNS = [BUCKET, QUANTILE_RANGE, NUMBER_OF_CUSTOMERS, MAX_SALES]
