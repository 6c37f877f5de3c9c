import pytest
from pydantic import ValidationError

from eardrill.models import DrillConfig, settings_changes


def test_defaults_produce_no_query_params():
	assert DrillConfig().to_query_params() == {}


def test_query_params_hold_only_changed_fields():
	config = DrillConfig(selected_notes=(7, 0, 4), number_of_notes=5, consecutive_intervals=(1, 7))
	assert config.to_query_params() == {
		"selected_notes": "0,4,7",
		"number_of_notes": "5",
		"consecutive_intervals": "1,7",
	}


def test_query_params_round_trip():
	config = DrillConfig(
		exercise_type="Interval comparison",
		question_note_range=(-12, 24),
		rhythm="fixed",
		include_target_in_comparison=True,
		target_intervals=(5, 7),
	)
	again = DrillConfig.from_query_params(config.to_query_params())
	assert again.same_as(config)
	assert again == config


def test_absent_fields_fall_back_to_defaults():
	config = DrillConfig.from_query_params({"tempo": "120"})
	assert config.tempo == 120
	assert config.selected_notes == DrillConfig().selected_notes


def test_bad_query_values_are_ignored():
	config = DrillConfig.from_query_params({
		"number_of_notes": "lots",
		"question_note_range": "1,2,3",
		"tempo": "9000",
		"rhythm": "fixed",
	})
	assert config.number_of_notes == 3
	assert config.question_note_range == (0, 12)
	assert config.tempo == 200
	assert config.rhythm == "fixed"


def test_config_is_frozen_and_validated():
	config = DrillConfig()
	with pytest.raises(ValidationError):
		config.number_of_notes = 4  # type: ignore[misc]
	with pytest.raises(ValidationError):
		DrillConfig(number_of_notes=0)


def test_settings_changes():
	old = DrillConfig()
	new = DrillConfig(number_of_notes=4, reference_type="arpeggio")
	assert settings_changes(new, old) == ["number_of_notes: 3 -> 4"]
	assert settings_changes(new, None) == []


def test_root_note_pitch_must_be_a_note_name():
	assert DrillConfig(root_note_pitch="Eb3").root_note_pitch == "Eb3"
	with pytest.raises(ValidationError):
		DrillConfig(root_note_pitch="H9")
	config = DrillConfig.from_query_params({"root_note_pitch": "H9", "tempo": "120"})
	assert config.root_note_pitch == "C4"
	assert config.tempo == 120


def test_selected_notes_sort_numerically():
	config = DrillConfig(selected_notes=(10, 2, 0))
	assert config.to_query_params()["selected_notes"] == "0,2,10"
	assert DrillConfig.from_query_params({"selected_notes": "0,10,2"}).same_as(config)
