import pytest

from sqlswitch.services.sql_conversion.converters.declarative.oracle_preprocessor import OracleSyntaxPreprocessor
from sqlswitch.services.sql_conversion.converters.declarative.syntax_processors import (
    DETECTION_ONLY,
    PROCESSORS,
    convert_default_sysdate,
    convert_sequence_references,
    detect_partitioning,
    remove_comment_on,
    strip_cache,
    strip_compression,
    strip_constraint_state,
    strip_flashback_archive,
    strip_index_scope,
    strip_lob_options,
    strip_logging,
    strip_monitoring,
    strip_parallel,
    strip_physical_attributes,
    strip_result_cache_hint,
    strip_row_movement,
    strip_rowdependencies,
    strip_schema_prefix,
    strip_segment_creation,
    strip_storage_clause,
    strip_tablespace,
    strip_using_index,
    unquote_identifiers,
)
from sqlswitch.services.sql_conversion.models import Dialect, WarningType
from sqlswitch.services.sql_conversion.rules import RuleConfig, RuleConfigBuilder

PLAIN_SQL = "SELECT id, name FROM employees WHERE id = 1"
SCENARIO_TABLE = "CREATE TABLE t (id NUMBER(10)) SEGMENT CREATION IMMEDIATE NOLOGGING PARALLEL 4"


@pytest.mark.parametrize("dialect", list(Dialect))
def test_processors_leave_unrelated_sql_alone(dialect):
    for spec in PROCESSORS:
        outcome = spec.processor(PLAIN_SQL, dialect)
        assert outcome.sql == PLAIN_SQL, spec.name
        assert not outcome.fired, spec.name
        assert outcome.warning is None, spec.name


REWRITE_CASES = [
    (strip_index_scope, "CREATE INDEX ix_emp ON emp (dept_id) LOCAL", Dialect.MYSQL),
    (strip_lob_options, "CREATE TABLE docs (body CLOB) LOB (body) STORE AS SECUREFILE", Dialect.MYSQL),
    (strip_tablespace, "CREATE TABLE t (id NUMBER) TABLESPACE users", Dialect.MYSQL),
    (strip_storage_clause, "CREATE TABLE t (id NUMBER) STORAGE (INITIAL 64K NEXT 1M)", Dialect.POSTGRESQL),
    (strip_physical_attributes, "CREATE TABLE t (id NUMBER) PCTFREE 10 INITRANS 2", Dialect.POSTGRESQL),
    (strip_constraint_state, "ALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id) ENABLE VALIDATE", Dialect.MYSQL),
    (strip_using_index, "ALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id) USING INDEX pk_idx TABLESPACE idx",
     Dialect.POSTGRESQL),
    (strip_compression, "CREATE TABLE t (id NUMBER) COMPRESS FOR OLTP", Dialect.MYSQL),
    (remove_comment_on, "COMMENT ON TABLE emp IS 'Employees';", Dialect.MYSQL),
    (strip_segment_creation, "CREATE TABLE t (id NUMBER) SEGMENT CREATION DEFERRED", Dialect.MYSQL),
    (strip_logging, "CREATE TABLE t (id NUMBER) NOLOGGING", Dialect.POSTGRESQL),
    (strip_parallel, "CREATE TABLE t (id NUMBER) PARALLEL 8", Dialect.MYSQL),
    (strip_result_cache_hint, "SELECT /*+ RESULT_CACHE */ id FROM t", Dialect.POSTGRESQL),
    (strip_cache, "CREATE TABLE t (id NUMBER) NOCACHE", Dialect.MYSQL),
    (strip_rowdependencies, "CREATE TABLE t (id NUMBER) ROWDEPENDENCIES", Dialect.MYSQL),
    (strip_monitoring, "CREATE TABLE t (id NUMBER) NOMONITORING", Dialect.MYSQL),
    (convert_default_sysdate, "CREATE TABLE t (created DATE DEFAULT SYSDATE)", Dialect.MYSQL),
    (strip_flashback_archive, "CREATE TABLE t (id NUMBER) FLASHBACK ARCHIVE fda_year", Dialect.MYSQL),
    (strip_row_movement, "CREATE TABLE t (id NUMBER) ENABLE ROW MOVEMENT", Dialect.POSTGRESQL),
    (convert_sequence_references, "INSERT INTO t (id) VALUES (emp_seq.NEXTVAL)", Dialect.POSTGRESQL),
    (strip_schema_prefix, "SELECT id FROM hr.employees", Dialect.MYSQL),
    (unquote_identifiers, 'SELECT "EMP_ID" FROM t', Dialect.MYSQL),
]


@pytest.mark.parametrize("processor, sql, dialect", REWRITE_CASES, ids=[c[0].__name__ for c in REWRITE_CASES])
def test_rewriting_processors_are_idempotent(processor, sql, dialect):
    first = processor(sql, dialect)
    assert first.fired
    assert first.sql != sql

    second = processor(first.sql, dialect)
    assert not second.fired
    assert second.sql == first.sql


def test_partition_detection_only_warns_and_refires():
    sql = "CREATE TABLE sales (id NUMBER, sold DATE) PARTITION BY RANGE (sold) (PARTITION p1 VALUES LESS THAN (MAXVALUE))"
    first = detect_partitioning(sql, Dialect.MYSQL)
    assert first.sql == sql
    assert first.applied_rule == "Detected PARTITION BY RANGE"
    assert first.warning.type is WarningType.MANUAL_REVIEW_NEEDED

    second = detect_partitioning(first.sql, Dialect.MYSQL)
    assert second.fired
    assert "detect_partitioning" in DETECTION_ONLY


@pytest.mark.parametrize("dialect", list(Dialect))
def test_storage_hints_removed_for_every_target(dialect):
    result = OracleSyntaxPreprocessor(Dialect.ORACLE, dialect, RuleConfig.default()).convert_statement(SCENARIO_TABLE)

    assert result.sql == "CREATE TABLE t (id NUMBER(10))"
    assert result.applied_rules == [
        "Removed SEGMENT CREATION clause",
        "Removed LOGGING/NOLOGGING option",
        "Removed PARALLEL/NOPARALLEL option",
    ]


def test_disabled_gate_skips_processor():
    config = RuleConfigBuilder().ddl(remove_physical_attributes=False).build()
    result = OracleSyntaxPreprocessor(Dialect.ORACLE, Dialect.MYSQL, config).convert_statement(SCENARIO_TABLE)

    assert result.sql == SCENARIO_TABLE
    assert result.applied_rules == []


def test_quoted_and_qualified_identifiers_become_bare():
    sql = 'SELECT "EMP_ID", salary FROM HR.EMPLOYEES'
    result = OracleSyntaxPreprocessor(Dialect.ORACLE, Dialect.POSTGRESQL, RuleConfig.default()).convert_statement(sql)

    assert result.sql == "SELECT EMP_ID, salary FROM EMPLOYEES"
    assert "Removed schema prefix" in result.applied_rules
    assert "Removed double-quoted identifier syntax" in result.applied_rules


def test_quoted_qualifier_is_stripped_like_unquoted():
    outcome = strip_schema_prefix('SELECT * FROM "HR"."EMPLOYEES"', Dialect.MYSQL)
    assert outcome.sql == "SELECT * FROM EMPLOYEES"


def test_tablespace_kept_outside_mysql():
    sql = "CREATE TABLE t (id NUMBER) TABLESPACE users"
    assert not strip_tablespace(sql, Dialect.POSTGRESQL).fired
    assert strip_tablespace(sql, Dialect.MYSQL).sql == "CREATE TABLE t (id NUMBER)"


def test_comment_on_removed_only_for_mysql():
    sql = "COMMENT ON COLUMN emp.salary IS 'Monthly salary';"
    assert not remove_comment_on(sql, Dialect.POSTGRESQL).fired

    outcome = remove_comment_on(sql, Dialect.MYSQL)
    assert outcome.sql == ""
    assert outcome.warning.type is WarningType.SYNTAX_DIFFERENCE
    assert "MODIFY COLUMN" in outcome.warning.suggestion


def test_constraint_state_kept_for_oracle_target():
    sql = "ALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id) ENABLE NOVALIDATE"
    assert not strip_constraint_state(sql, Dialect.ORACLE).fired
    assert strip_constraint_state(sql, Dialect.MYSQL).sql == "ALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id)"


def test_using_index_clause_leaves_valid_constraint():
    sql = "ALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id) USING INDEX pk_idx TABLESPACE idx_ts"
    assert strip_using_index(sql, Dialect.MYSQL).sql == "ALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id)"


def test_default_sysdate_rewritten():
    outcome = convert_default_sysdate("CREATE TABLE t (created DATE DEFAULT SYSDATE)", Dialect.POSTGRESQL)
    assert outcome.sql == "CREATE TABLE t (created DATE DEFAULT CURRENT_TIMESTAMP)"
    assert not convert_default_sysdate("CREATE TABLE t (created DATE DEFAULT SYSDATE)", Dialect.ORACLE).fired


def test_sequence_references_per_target():
    sql = "INSERT INTO t (id) VALUES (emp_seq.NEXTVAL)"
    assert convert_sequence_references(sql, Dialect.POSTGRESQL).sql == "INSERT INTO t (id) VALUES (nextval('emp_seq'))"

    mysql = convert_sequence_references(sql, Dialect.MYSQL)
    assert "NEXTVAL unsupported" in mysql.sql
    assert mysql.warning.type is WarningType.UNSUPPORTED_FUNCTION


def test_row_movement_not_mistaken_for_constraint_state():
    result = OracleSyntaxPreprocessor(Dialect.ORACLE, Dialect.MYSQL, RuleConfig.default()).convert_statement(
        "CREATE TABLE t (id NUMBER) ENABLE ROW MOVEMENT"
    )
    assert result.sql == "CREATE TABLE t (id NUMBER)"
    assert result.applied_rules == ["Removed ROW MOVEMENT clause"]


def test_constraint_state_needs_a_constraint_clause():
    trigger = strip_constraint_state("ALTER TRIGGER trg_emp ENABLE", Dialect.MYSQL)
    assert not trigger.fired
    assert trigger.sql == "ALTER TRIGGER trg_emp ENABLE"
    assert not strip_constraint_state("ALTER TABLE emp ENABLE CONSTRAINT fk_dept", Dialect.POSTGRESQL).fired

    column = strip_constraint_state('CREATE TABLE t ("ID" NUMBER NOT NULL ENABLE, CHECK (id > 0) DISABLE)',
                                    Dialect.POSTGRESQL)
    assert column.sql == 'CREATE TABLE t ("ID" NUMBER NOT NULL, CHECK (id > 0))'


def test_lob_storage_clause_removed_for_open_source_targets():
    sql = "CREATE TABLE docs (id NUMBER, body CLOB) LOB (body) STORE AS SECUREFILE body_seg (CACHE TABLESPACE users)"
    outcome = strip_lob_options(sql, Dialect.POSTGRESQL)
    assert outcome.sql == "CREATE TABLE docs (id NUMBER, body CLOB)"
    assert outcome.applied_rule == "Removed LOB storage clause"


def test_lob_cache_option_leaves_no_empty_parameter_list():
    sql = "CREATE TABLE docs (body CLOB) LOB (body) STORE AS SECUREFILE (CACHE)"
    for dialect in (Dialect.MYSQL, Dialect.POSTGRESQL):
        result = OracleSyntaxPreprocessor(Dialect.ORACLE, dialect, RuleConfig.default()).convert_statement(sql)
        assert result.sql == "CREATE TABLE docs (body CLOB)"
        assert "()" not in result.sql

    oracle = OracleSyntaxPreprocessor(Dialect.ORACLE, Dialect.ORACLE, RuleConfig.default()).convert_statement(sql)
    assert "()" not in oracle.sql
    assert "(CACHE)" in oracle.sql
    assert not strip_cache("CREATE TABLE t (c CLOB) LOB (c) STORE AS (TABLESPACE users CACHE)", Dialect.MYSQL).fired
