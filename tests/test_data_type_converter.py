from sqlswitch.services.sql_conversion.converters.declarative.data_type_converter import DataTypeConverter
from sqlswitch.services.sql_conversion.models import Dialect, WarningType
from sqlswitch.services.sql_conversion.rules import RuleConfig

EMPLOYEE_TABLE = (
    "CREATE TABLE emp (id NUMBER(10), name VARCHAR2(100 BYTE), salary NUMBER(10,2), "
    "hired DATE, notes CLOB, photo BLOB)"
)


def convert(sql, source, target, config=None):
    converter = DataTypeConverter(source, target, config or RuleConfig.default())
    return converter.convert_statement(sql)


def test_oracle_to_mysql_types():
    result = convert(EMPLOYEE_TABLE, Dialect.ORACLE, Dialect.MYSQL)
    assert result.sql == (
        "CREATE TABLE emp (id BIGINT, name VARCHAR(100), salary DECIMAL(10,2), "
        "hired DATETIME, notes LONGTEXT, photo LONGBLOB)"
    )
    assert result.applied_rules == [
        "Removed BYTE/CHAR length semantics",
        "Converted data types (Oracle -> MySQL)",
    ]


def test_oracle_to_postgresql_types():
    result = convert(EMPLOYEE_TABLE, Dialect.ORACLE, Dialect.POSTGRESQL)
    assert result.sql == (
        "CREATE TABLE emp (id BIGINT, name VARCHAR(100), salary NUMERIC(10,2), "
        "hired TIMESTAMP, notes TEXT, photo BYTEA)"
    )


def test_number_precision_picks_smallest_integer():
    result = convert("CREATE TABLE t (a NUMBER(3), b NUMBER(5), c NUMBER(9))", Dialect.ORACLE, Dialect.MYSQL)
    assert result.sql == "CREATE TABLE t (a TINYINT, b SMALLINT, c INT)"


def test_minimal_preset_keeps_date():
    sql = "CREATE TABLE emp (hire_date DATE)"
    assert convert(sql, Dialect.ORACLE, Dialect.MYSQL, RuleConfig.minimal()).sql == sql
    assert convert(sql, Dialect.ORACLE, Dialect.MYSQL).sql == "CREATE TABLE emp (hire_date DATETIME)"
    assert convert(sql, Dialect.ORACLE, Dialect.POSTGRESQL).sql == "CREATE TABLE emp (hire_date TIMESTAMP)"


def test_wide_number_warns_about_data_loss():
    result = convert("CREATE TABLE t (big NUMBER(20))", Dialect.ORACLE, Dialect.MYSQL)
    assert [w.type for w in result.warnings] == [WarningType.DATA_TYPE_MISMATCH]

    quiet = convert("CREATE TABLE t (big NUMBER(20))", Dialect.ORACLE, Dialect.MYSQL, RuleConfig.minimal())
    assert quiet.warnings == []


def test_timezone_timestamps_warn_for_mysql():
    result = convert("CREATE TABLE t (ts TIMESTAMP WITH TIME ZONE)", Dialect.ORACLE, Dialect.MYSQL)
    assert result.sql == "CREATE TABLE t (ts DATETIME)"
    assert any("time zone" in w.message.lower() for w in result.warnings)


def test_mysql_to_postgresql_types_keep_table_options():
    sql = ("CREATE TABLE orders (id INT AUTO_INCREMENT PRIMARY KEY, active TINYINT(1), "
           "created DATETIME) ENGINE=InnoDB AUTO_INCREMENT=100")
    result = convert(sql, Dialect.MYSQL, Dialect.POSTGRESQL)
    assert "id SERIAL PRIMARY KEY" in result.sql
    assert "active BOOLEAN" in result.sql
    assert "created TIMESTAMP" in result.sql
    assert "AUTO_INCREMENT=100" in result.sql


def test_postgresql_to_oracle_types():
    result = convert("CREATE TABLE t (id BIGSERIAL, body TEXT, ok BOOLEAN)", Dialect.POSTGRESQL, Dialect.ORACLE)
    assert result.sql == "CREATE TABLE t (id NUMBER GENERATED ALWAYS AS IDENTITY, body CLOB, ok NUMBER(1))"


def test_same_dialect_is_noop():
    result = convert(EMPLOYEE_TABLE, Dialect.ORACLE, Dialect.ORACLE)
    assert result.sql == EMPLOYEE_TABLE
    assert result.applied_rules == []
