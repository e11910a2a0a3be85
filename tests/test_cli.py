# tests/test_cli.py
from datetime import date

from models import db
from models.slot import Slot
from scheduling import templates


def _setup_template(app, **kwargs):
    with app.app_context():
        templates.upsert_template("D1", kwargs.pop("day", "monday"), "09:00", "10:00", 30, **kwargs)
        db.session.commit()


def test_generate_slots_for_range(app):
    _setup_template(app)
    runner = app.test_cli_runner()

    result = runner.invoke(args=["generate-slots", "D1", "2024-06-03", "2024-06-10", "--facility", "H3"])

    assert result.exit_code == 0, result.output
    assert "4 slots ready for D1" in result.output
    with app.app_context():
        assert {s.facility_id for s in Slot.query.all()} == {"H3"}
        assert {s.date for s in Slot.query.all()} == {date(2024, 6, 3), date(2024, 6, 10)}


def test_generate_slots_defaults_to_coming_week(app, frozen_now):
    _setup_template(app)
    result = app.test_cli_runner().invoke(args=["generate-slots", "D1"])

    # 2024-06-01 .. 2024-06-08 holds one Monday
    assert result.exit_code == 0, result.output
    assert "2 slots ready" in result.output


def test_generate_slots_reports_bad_input(app):
    result = app.test_cli_runner().invoke(args=["generate-slots", "D1", "2024-06-10", "2024-06-03"])
    assert result.exit_code != 0
    assert "startDate must be before endDate" in result.output


def test_list_templates(app):
    runner = app.test_cli_runner()
    assert "No templates found" in runner.invoke(args=["list-templates"]).output

    _setup_template(app, max_bookings_per_slot=2)
    _setup_template(app, day="friday", is_active=False)

    output = runner.invoke(args=["list-templates", "--provider", "D1"]).output
    lines = output.strip().splitlines()
    assert len(lines) == 2
    assert "monday" in lines[0] and "every 30m x2 (active)" in lines[0]
    assert "friday" in lines[1] and "(inactive)" in lines[1]
