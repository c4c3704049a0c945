"""Project tables, views and procedures for a local backend."""

PROJECTS_TABLE = "projects"
CALCULATION_METHODS_VIEW = "v_project_calculation_methods"
SWITCH_METHOD_RPC = "switch_project_calculation_method"
REFRESH_ANALYTICS_RPC = "refresh_project_analytics_views"

PROJECTS_DDL = {
    "sqlite": """
CREATE TABLE IF NOT EXISTS projects (
    id                  TEXT PRIMARY KEY,
    name                TEXT NOT NULL,
    calculation_method  TEXT NOT NULL DEFAULT 'or_based'
                        CHECK (calculation_method IN ('or_based', 'otc_based')),
    status              TEXT NOT NULL DEFAULT 'active',
    created_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS project_machines (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id  TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    name        TEXT
);
CREATE VIEW IF NOT EXISTS v_project_calculation_methods AS
SELECT
    p.id AS project_id,
    p.name AS project_name,
    p.calculation_method,
    CASE p.calculation_method
        WHEN 'otc_based' THEN 'Quantities from OTC orders'
        ELSE 'Quantities from OR orders'
    END AS calculation_method_description,
    (SELECT COUNT(*) FROM project_machines m WHERE m.project_id = p.id) AS machine_count,
    p.created_at,
    p.updated_at
FROM projects p;
""",
    "postgresql": """
CREATE TABLE IF NOT EXISTS projects (
    id                  UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name                TEXT NOT NULL,
    calculation_method  TEXT NOT NULL DEFAULT 'or_based'
                        CHECK (calculation_method IN ('or_based', 'otc_based')),
    status              TEXT NOT NULL DEFAULT 'active',
    created_at          TIMESTAMPTZ DEFAULT now(),
    updated_at          TIMESTAMPTZ DEFAULT now()
);
CREATE TABLE IF NOT EXISTS project_machines (
    id          BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
    project_id  UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    name        TEXT
);
CREATE OR REPLACE VIEW v_project_calculation_methods AS
SELECT
    p.id AS project_id,
    p.name AS project_name,
    p.calculation_method,
    CASE p.calculation_method
        WHEN 'otc_based' THEN 'Quantities from OTC orders'
        ELSE 'Quantities from OR orders'
    END AS calculation_method_description,
    (SELECT COUNT(*) FROM project_machines m WHERE m.project_id = p.id) AS machine_count,
    p.created_at,
    p.updated_at
FROM projects p;
CREATE OR REPLACE FUNCTION switch_project_calculation_method(project_uuid UUID, method TEXT)
RETURNS void LANGUAGE plpgsql AS $$
BEGIN
    UPDATE projects SET calculation_method = method, updated_at = now() WHERE id = project_uuid;
    IF NOT FOUND THEN
        RAISE EXCEPTION 'Project % not found', project_uuid;
    END IF;
END;
$$;
CREATE OR REPLACE FUNCTION refresh_project_analytics_views() RETURNS void
LANGUAGE plpgsql AS $$ BEGIN NULL; END; $$;
""",
}

# Local views are computed on read, so refreshing them is a no-op.
PROJECT_PROCEDURES = {
    "sqlite": {
        SWITCH_METHOD_RPC: (
            "UPDATE projects SET calculation_method = :method, "
            "updated_at = CURRENT_TIMESTAMP WHERE id = :project_uuid"
        ),
        REFRESH_ANALYTICS_RPC: "SELECT 1 AS refreshed",
    },
}


def ensure_projects_schema(service) -> None:
    """Create the project tables, view and procedures on a local SQL backend."""
    service.execute_ddl(PROJECTS_DDL[service.dialect])
    for name, sql in PROJECT_PROCEDURES.get(service.dialect, {}).items():
        service.register_procedure(name, sql)
