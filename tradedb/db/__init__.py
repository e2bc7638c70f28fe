from .database import Database
from .migrate import apply_sql, apply_sql_file, upgrade_head
from .models import Base, StockPrice
from .provision import SchemaVerificationError, find_table, provision_schema, verify_schema
from .seed import SAMPLE_PRICES, PriceSnapshot, build_upsert, count_snapshots, get_snapshot, upsert_snapshots
