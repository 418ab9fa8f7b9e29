from sqlswitch.services.sql_conversion.converters.procedural.package_body_converter import (
    PackageBodyConverter,
    to_mysql_type,
    to_postgres_type,
)
from sqlswitch.services.sql_conversion.converters.procedural.package_parser import (
    Parameter,
    extract_routines,
    find_block_end,
    parse_package_body,
    parse_package_spec,
    parse_parameters,
    split_routine_body,
)
from sqlswitch.services.sql_conversion.models import Dialect, WarningSeverity, WarningType
from sqlswitch.services.sql_conversion.rules import RuleConfig, RuleConfigBuilder

EMP_PACKAGE = """CREATE OR REPLACE PACKAGE BODY emp_pkg AS
  PROCEDURE raise_salary(p_emp_id IN NUMBER, p_pct IN NUMBER DEFAULT 10) IS
    v_total NUMBER := 0;
  BEGIN
    IF p_pct > 50 THEN
      RAISE_APPLICATION_ERROR(-20001, 'bad input');
    END IF;
    UPDATE employees SET salary = NVL(salary, 0) * (1 + p_pct / 100) WHERE id = p_emp_id;
    DBMS_OUTPUT.PUT_LINE('Updated ' || p_emp_id);
  END raise_salary;

  FUNCTION get_bonus(p_salary IN NUMBER) RETURN NUMBER(10,2) IS
  BEGIN
    RETURN p_salary * 0.1;
  END get_bonus;
END emp_pkg;"""

EMPTY_PACKAGE = """CREATE OR REPLACE PACKAGE BODY cfg_pkg AS
  g_limit NUMBER := 100;
END cfg_pkg;"""

LOCAL_HELPER_PACKAGE = """CREATE OR REPLACE PACKAGE BODY emp_pkg AS
  PROCEDURE outer_p(p_id IN NUMBER) IS
    PROCEDURE helper IS
    BEGIN
      NULL;
    END helper;
  BEGIN
    helper;
    UPDATE emp SET sal = 0 WHERE id = p_id;
  END outer_p;
END emp_pkg;"""


def convert(sql, target, config=None, enable_comments=True):
    converter = PackageBodyConverter(Dialect.ORACLE, target, config or RuleConfig.default(),
                                     enable_comments=enable_comments)
    return converter.convert_statement(sql)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def test_parse_package_body_extracts_routines():
    package = parse_package_body(EMP_PACKAGE)
    assert package.name == "emp_pkg"
    assert package.header_found
    assert [(r.kind, r.name) for r in package.routines] == [
        ("PROCEDURE", "raise_salary"),
        ("FUNCTION", "get_bonus"),
    ]

    procedure, function = package.routines
    assert procedure.body.startswith("v_total NUMBER := 0;")
    assert procedure.body.endswith("DBMS_OUTPUT.PUT_LINE('Updated ' || p_emp_id);")
    assert procedure.return_type is None
    assert function.return_type == "NUMBER(10,2)"
    assert function.body == "BEGIN\n    RETURN p_salary * 0.1;"


def test_parse_parameters_modes_and_defaults():
    assert parse_parameters("p_emp_id IN NUMBER, p_pct IN NUMBER DEFAULT 10") == [
        Parameter(name="p_emp_id", mode="IN", data_type="NUMBER"),
        Parameter(name="p_pct", mode="IN", data_type="NUMBER", default="10"),
    ]
    assert parse_parameters("p_val IN OUT NOCOPY VARCHAR2") == [
        Parameter(name="p_val", mode="IN OUT", data_type="VARCHAR2"),
    ]
    assert parse_parameters("") == []


def test_forward_declarations_are_skipped():
    body = "PROCEDURE helper(p NUMBER);\n PROCEDURE helper(p NUMBER) IS BEGIN NULL; END helper;"
    routines = extract_routines(body)
    assert len(routines) == 1
    assert routines[0].body == "BEGIN NULL;"


def test_block_end_counts_case_and_ignores_strings():
    text = "IS BEGIN v := CASE WHEN a = 1 THEN 'END' ELSE 'x' END; IF v THEN NULL; END IF; END p; trailing"
    end_keyword, after = find_block_end(text, 0)
    assert text[end_keyword:after] == "END p;"


def test_local_routine_does_not_end_the_outer_routine():
    package = parse_package_body(LOCAL_HELPER_PACKAGE)
    assert [r.name for r in package.routines] == ["outer_p"]

    outer = package.routines[0]
    assert outer.body.startswith("PROCEDURE helper IS")
    assert outer.body.endswith("UPDATE emp SET sal = 0 WHERE id = p_id;")


def test_block_end_skips_end_labelled_with_another_name():
    text = "IS BEGIN NULL; END other; BEGIN x := 1; END p; trailing"
    end_keyword, after = find_block_end(text, 0, "p")
    assert text[end_keyword:after] == "END p;"


def test_split_routine_body_lifts_local_routines():
    sections = split_routine_body(parse_package_body(LOCAL_HELPER_PACKAGE).routines[0].body)
    assert sections.declarations == ""
    assert [(r.kind, r.name, r.body) for r in sections.local_routines] == [
        ("PROCEDURE", "helper", "BEGIN\n      NULL;"),
    ]
    assert sections.statements == "helper;\n    UPDATE emp SET sal = 0 WHERE id = p_id;"

    plain = split_routine_body("v NUMBER;\n  c VARCHAR2(10) := 'BEGIN';\nBEGIN\n  NULL;")
    assert plain.declarations == "v NUMBER;\n  c VARCHAR2(10) := 'BEGIN';"
    assert plain.statements == "NULL;"
    assert plain.local_routines == []


def test_missing_header_uses_unknown_package():
    package = parse_package_body("PROCEDURE p IS BEGIN NULL; END p;")
    assert package.name == "unknown_package"
    assert not package.header_found
    assert [r.name for r in package.routines] == ["p"]


def test_parse_package_spec_members():
    name, members = parse_package_spec(
        "CREATE OR REPLACE PACKAGE emp_pkg AS\n"
        "  TYPE emp_tab IS TABLE OF NUMBER;\n"
        "  PROCEDURE raise_salary(p NUMBER);\n"
        "  FUNCTION get_bonus RETURN NUMBER;\n"
        "END emp_pkg;"
    )
    assert name == "emp_pkg"
    assert members == [("TYPE", "emp_tab"), ("PROCEDURE", "raise_salary"), ("FUNCTION", "get_bonus")]


# ---------------------------------------------------------------------------
# Type mapping
# ---------------------------------------------------------------------------

def test_mysql_type_mapping():
    assert to_mysql_type("NUMBER(10,2)") == "DECIMAL(38,10)"
    assert to_mysql_type("VARCHAR2") == "VARCHAR(4000)"
    assert to_mysql_type("VARCHAR2(50 BYTE)") == "VARCHAR(50)"
    assert to_mysql_type("CLOB") == "LONGTEXT"
    assert to_mysql_type("BLOB") == "LONGBLOB"
    assert to_mysql_type("DATE") == "DATETIME"
    assert to_mysql_type("BOOLEAN") == "TINYINT(1)"


def test_postgres_type_mapping():
    assert to_postgres_type("VARCHAR2(20)") == "VARCHAR(20)"
    assert to_postgres_type("NUMBER") == "NUMERIC"
    assert to_postgres_type("DATE") == "TIMESTAMP"
    assert to_postgres_type("CLOB") == "TEXT"
    assert to_postgres_type("BLOB") == "BYTEA"
    assert to_postgres_type("PLS_INTEGER") == "INTEGER"


# ---------------------------------------------------------------------------
# MySQL assembly
# ---------------------------------------------------------------------------

def test_mysql_routines():
    result = convert(EMP_PACKAGE, Dialect.MYSQL)
    sql = result.sql

    assert sql.startswith("DELIMITER //")
    assert sql.endswith("DELIMITER ;")
    assert "CREATE PROCEDURE emp_pkg_raise_salary(IN p_emp_id DECIMAL(38,10), IN p_pct DECIMAL(38,10))" in sql
    assert "CREATE FUNCTION emp_pkg_get_bonus(p_salary DECIMAL(38,10))" in sql
    assert "RETURNS DECIMAL(38,10)\nDETERMINISTIC" in sql
    assert "DECLARE v_total DECIMAL(38,10) DEFAULT 0;" in sql
    assert "SIGNAL SQLSTATE '45000' SET MESSAGE_TEXT = 'bad input'" in sql
    assert "IFNULL(salary, 0)" in sql
    assert "-- DBMS_OUTPUT removed" in sql
    assert "PUT_LINE" not in sql
    assert sql.count("END//") == 2

    assert result.applied_rules == [
        "Converted package procedure emp_pkg.raise_salary to MySQL procedure emp_pkg_raise_salary",
        "Converted package function emp_pkg.get_bonus to MySQL function emp_pkg_get_bonus",
    ]
    types = [w.type for w in result.warnings]
    assert types.count(WarningType.PARTIAL_SUPPORT) == 2
    assert WarningType.SYNTAX_DIFFERENCE in types


def test_mysql_assignment_and_elsif():
    package = """CREATE PACKAGE BODY calc AS
  PROCEDURE bump(p_n IN OUT NUMBER) IS
  BEGIN
    IF p_n > 10 THEN
      p_n := p_n + 1;
    ELSIF p_n > 5 THEN
      p_n := SYSDATE;
    END IF;
  END bump;
END calc;"""
    sql = convert(package, Dialect.MYSQL).sql
    assert "CREATE PROCEDURE calc_bump(INOUT p_n DECIMAL(38,10))" in sql
    assert "SET p_n = p_n + 1;" in sql
    assert "ELSEIF p_n > 5 THEN" in sql
    assert "SET p_n = NOW();" in sql


def test_mysql_without_comments():
    sql = convert(EMP_PACKAGE, Dialect.MYSQL, enable_comments=False).sql
    assert "--" not in sql
    assert "PUT_LINE" not in sql


def test_mysql_local_routine_is_reported_not_declared():
    result = convert(LOCAL_HELPER_PACKAGE, Dialect.MYSQL)
    sql = result.sql

    assert "CREATE PROCEDURE emp_pkg_outer_p(IN p_id DECIMAL(38,10))" in sql
    assert "UPDATE emp SET sal = 0 WHERE id = p_id;" in sql
    assert "-- Unsupported local procedure: helper" in sql
    assert "DECLARE PROCEDURE" not in sql
    assert "PROCEDURE helper" not in sql
    assert any(w.type is WarningType.MANUAL_REVIEW_NEEDED and "Local procedure helper" in w.message
               for w in result.warnings)


def test_mysql_anchored_types_need_review():
    package = """CREATE PACKAGE BODY emp_pkg AS
  PROCEDURE set_sal(p_id IN emp.id%TYPE) IS
    v_sal emp.sal%TYPE;
    v_row emp%ROWTYPE;
  BEGIN
    SELECT sal INTO v_sal FROM emp WHERE id = p_id;
  END set_sal;
END emp_pkg;"""
    result = convert(package, Dialect.MYSQL)
    sql = result.sql

    assert "DECLARE v_sal" not in sql
    assert "DECLARE v_row" not in sql
    assert "-- Unsupported declaration: v_sal emp.sal%TYPE" in sql
    assert "-- Unsupported declaration: v_row emp%ROWTYPE" in sql
    review = [w.message for w in result.warnings if w.type is WarningType.MANUAL_REVIEW_NEEDED]
    assert "Parameter p_id in set_sal uses the anchored type emp.id%TYPE, which MySQL does not support." in review
    assert len(review) == 3

    postgres = convert(package, Dialect.POSTGRESQL)
    assert "v_sal emp.sal%TYPE;" in postgres.sql
    assert WarningType.MANUAL_REVIEW_NEEDED not in [w.type for w in postgres.warnings]


# ---------------------------------------------------------------------------
# PostgreSQL assembly
# ---------------------------------------------------------------------------

def test_postgresql_routines():
    result = convert(EMP_PACKAGE, Dialect.POSTGRESQL)
    sql = result.sql

    assert "CREATE SCHEMA IF NOT EXISTS emp_pkg;" in sql
    assert "CREATE OR REPLACE PROCEDURE emp_pkg.raise_salary(IN p_emp_id NUMERIC, IN p_pct NUMERIC DEFAULT 10)" in sql
    assert "CREATE OR REPLACE FUNCTION emp_pkg.get_bonus(IN p_salary NUMERIC)\nRETURNS NUMERIC(10,2)" in sql
    assert sql.count("LANGUAGE plpgsql AS $$") == 2
    assert "DECLARE\nv_total NUMERIC := 0;" in sql
    assert "RAISE EXCEPTION 'bad input'" in sql
    assert "COALESCE(salary, 0)" in sql
    assert "RAISE NOTICE '%', 'Updated ' || p_emp_id" in sql
    assert sql.rstrip().endswith("END;\n$$;")
    assert len(result.applied_rules) == 2


def test_postgresql_local_routine_is_lifted_out():
    result = convert(LOCAL_HELPER_PACKAGE, Dialect.POSTGRESQL)
    sql = result.sql

    assert "CREATE OR REPLACE PROCEDURE emp_pkg.outer_p(IN p_id NUMERIC)" in sql
    assert "DECLARE\n-- Unsupported local procedure: helper\nBEGIN\nhelper;" in sql
    assert "UPDATE emp SET sal = 0 WHERE id = p_id;" in sql
    assert "PROCEDURE helper" not in sql
    assert any("Local procedure helper" in w.message for w in result.warnings)


def test_function_without_return_gets_fallback():
    package = """CREATE PACKAGE BODY util AS
  FUNCTION noop RETURN NUMBER IS
  BEGIN
    NULL;
  END noop;
END util;"""
    result = convert(package, Dialect.POSTGRESQL)
    assert "RETURN NULL; -- REVIEW: no return value in the original function" in result.sql
    assert any("no RETURN statement" in w.message for w in result.warnings)

    mysql = convert(package, Dialect.MYSQL)
    assert "RETURN NULL;" in mysql.sql


def test_partial_conversion_warning_follows_rule():
    config = RuleConfigBuilder().warnings(warn_partial_conversion=False).build()
    result = convert(EMP_PACKAGE, Dialect.POSTGRESQL, config)
    assert WarningType.PARTIAL_SUPPORT not in [w.type for w in result.warnings]


# ---------------------------------------------------------------------------
# Passthrough
# ---------------------------------------------------------------------------

def test_empty_package_for_mysql_is_bracketed():
    result = convert(EMPTY_PACKAGE, Dialect.MYSQL)
    sql = result.sql

    assert sql.startswith("DELIMITER //")
    assert sql.endswith("DELIMITER ;")
    assert "-- No procedures or functions found in package body" in sql
    assert "/*\n" + EMPTY_PACKAGE + "\n*/" in sql
    assert result.applied_rules == ["Preserved package body cfg_pkg as a comment"]
    assert result.warnings[0].type is WarningType.MANUAL_REVIEW_NEEDED


def test_empty_package_for_postgresql_has_no_delimiter():
    sql = convert(EMPTY_PACKAGE, Dialect.POSTGRESQL, enable_comments=False).sql
    assert "DELIMITER" not in sql
    assert "-- No procedures" not in sql
    assert sql == "/*\n" + EMPTY_PACKAGE + "\n*/"


def test_block_comments_in_preserved_body_are_neutralised():
    package = "CREATE PACKAGE BODY c AS\n  /* settings */\n  g NUMBER;\nEND c;"
    sql = convert(package, Dialect.POSTGRESQL).sql
    assert "/* settings * /" in sql


def test_missing_header_is_reported():
    result = convert("PROCEDURE p IS BEGIN NULL; END p;", Dialect.POSTGRESQL)
    assert result.warnings[0].severity is WarningSeverity.WARNING
    assert "header not recognised" in result.warnings[0].message
    assert "CREATE OR REPLACE PROCEDURE unknown_package.p()" in result.sql
