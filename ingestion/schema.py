"""otc_orders table schema and the canonical record layout."""

OTC_TABLE = "otc_orders"
OTC_ANALYTICS_VIEW = "v_otc_analytics"
TRUNCATE_RPC = "truncate_otc_orders_restart_identity"

# Canonical record fields, in export / display order.
OTC_COLUMNS = [
    "succursale",
    "operateur",
    "date_cde",
    "num_cde",
    "po_client",
    "reference",
    "designation",
    "qte_cde",
    "qte_livree",
    "solde",
    "date_bl",
    "num_bl",
    "status",
    "num_client",
    "nom_clients",
]
REQUIRED_FIELDS = ["succursale", "operateur", "num_cde", "reference", "designation"]
DEFAULT_STATUS = "Pending"

# Local stand-ins for the hosted schema. The hosted backend owns the real one.
OTC_DDL = {
    "sqlite": """
CREATE TABLE IF NOT EXISTS otc_orders (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    succursale   TEXT    NOT NULL,
    operateur    TEXT    NOT NULL,
    date_cde     DATE,
    num_cde      TEXT    NOT NULL,
    po_client    TEXT,
    reference    TEXT    NOT NULL,
    designation  TEXT    NOT NULL,
    qte_cde      REAL    NOT NULL DEFAULT 0,
    qte_livree   REAL    NOT NULL DEFAULT 0,
    solde        REAL    GENERATED ALWAYS AS (qte_cde - qte_livree) VIRTUAL,
    date_bl      DATE,
    num_bl       TEXT,
    status       TEXT    NOT NULL DEFAULT 'Pending',
    num_client   TEXT,
    nom_clients  TEXT,
    created_at   TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at   TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_otc_date_cde ON otc_orders(date_cde);
CREATE INDEX IF NOT EXISTS idx_otc_succursale ON otc_orders(succursale);
CREATE VIEW IF NOT EXISTS v_otc_analytics AS
SELECT
    succursale,
    COUNT(*) AS total_orders,
    SUM(CASE WHEN status = 'Delivered' THEN 1 ELSE 0 END) AS delivered_orders,
    SUM(CASE WHEN status = 'Pending' THEN 1 ELSE 0 END) AS pending_orders,
    SUM(CASE WHEN status = 'In Progress' THEN 1 ELSE 0 END) AS in_progress_orders,
    SUM(CASE WHEN status = 'Cancelled' THEN 1 ELSE 0 END) AS cancelled_orders,
    SUM(qte_cde) AS total_ordered_quantity,
    SUM(qte_livree) AS total_delivered_quantity,
    SUM(solde) AS total_balance,
    ROUND(100.0 * SUM(qte_livree) / NULLIF(SUM(qte_cde), 0), 2) AS delivery_percentage,
    MIN(date_cde) AS earliest_order_date,
    MAX(date_cde) AS latest_order_date
FROM otc_orders
GROUP BY succursale;
""",
    "postgresql": """
CREATE TABLE IF NOT EXISTS otc_orders (
    id           BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
    succursale   TEXT    NOT NULL,
    operateur    TEXT    NOT NULL,
    date_cde     DATE,
    num_cde      TEXT    NOT NULL,
    po_client    TEXT,
    reference    TEXT    NOT NULL,
    designation  TEXT    NOT NULL,
    qte_cde      NUMERIC NOT NULL DEFAULT 0,
    qte_livree   NUMERIC NOT NULL DEFAULT 0,
    solde        NUMERIC GENERATED ALWAYS AS (qte_cde - qte_livree) STORED,
    date_bl      DATE,
    num_bl       TEXT,
    status       TEXT    NOT NULL DEFAULT 'Pending',
    num_client   TEXT,
    nom_clients  TEXT,
    created_at   TIMESTAMPTZ DEFAULT now(),
    updated_at   TIMESTAMPTZ DEFAULT now()
);
CREATE OR REPLACE VIEW v_otc_analytics AS
SELECT
    succursale,
    COUNT(*) AS total_orders,
    COUNT(*) FILTER (WHERE status = 'Delivered') AS delivered_orders,
    COUNT(*) FILTER (WHERE status = 'Pending') AS pending_orders,
    COUNT(*) FILTER (WHERE status = 'In Progress') AS in_progress_orders,
    COUNT(*) FILTER (WHERE status = 'Cancelled') AS cancelled_orders,
    SUM(qte_cde) AS total_ordered_quantity,
    SUM(qte_livree) AS total_delivered_quantity,
    SUM(solde) AS total_balance,
    ROUND(100.0 * SUM(qte_livree) / NULLIF(SUM(qte_cde), 0), 2) AS delivery_percentage,
    MIN(date_cde) AS earliest_order_date,
    MAX(date_cde) AS latest_order_date
FROM otc_orders
GROUP BY succursale;
CREATE OR REPLACE FUNCTION truncate_otc_orders_restart_identity() RETURNS void
LANGUAGE sql AS $$ TRUNCATE otc_orders RESTART IDENTITY $$;
""",
}

OTC_PROCEDURES = {
    "sqlite": {
        TRUNCATE_RPC: (
            "DELETE FROM otc_orders; "
            "DELETE FROM sqlite_sequence WHERE name = 'otc_orders'"
        ),
    },
}


def ensure_otc_schema(service) -> None:
    """Create otc_orders, its analytics view and truncate procedure locally.

    `service` is a SQL backend (SQLite or Postgres) exposing execute_ddl().
    """
    service.execute_ddl(OTC_DDL[service.dialect])
    for name, sql in OTC_PROCEDURES.get(service.dialect, {}).items():
        service.register_procedure(name, sql)
