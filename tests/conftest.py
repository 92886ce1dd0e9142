"""
Pytest configuration and shared fixtures.

This file contains pytest configuration and reusable test fixtures.
"""

import json
from pathlib import Path

import pytest

import libbids.config.settings as settings_mod
from libbids.config.settings import SettingsManager
from libbids.core.decomposer import build_table
from libbids.core.entity_config import EntitySchema, default_schema
from libbids.core.models import DatasetTable
from libbids.core.patterns import CompiledPattern, compile_pattern


SAMPLE_PATHS = [
    "ds/sub-01/anat/sub-01_T1w.nii.gz",
    "ds/sub-01/anat/sub-01_T1w.json",
    "ds/sub-01/func/sub-01_task-rest_run-1_bold.nii.gz",
    "ds/sub-01/func/sub-01_task-rest_run-1_bold.json",
    "ds/sub-01/func/sub-01_task-rest_run-10_bold.nii.gz",
    "ds/sub-01/func/sub-01_task-rest_run-2_bold.nii.gz",
    "ds/sub-01/func/sub-01_task-motor_run-1_events.tsv",
    "ds/sub-01/func/sub-01_task-rest_bold.txt",
    "ds/sub-02/ses-pre/dwi/sub-02_ses-pre_dwi.nii.gz",
    "ds/sub-02/ses-pre/dwi/sub-02_ses-pre_dwi.bval",
    "ds/derivatives/fmriprep/sub-01/anat/sub-01_rec-preproc_T1w.nii.gz",
    "ds/README",
]
"""Candidate paths; the .txt file and README are not dataset files."""


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch):
    """
    Replace the global settings manager with one backed by a temporary file.

    Keeps tests from reading or writing the user's settings.
    """
    manager = SettingsManager(config_file=tmp_path / "settings" / "settings.json")
    manager.load()
    manager.get().log_to_file = False
    monkeypatch.setattr(settings_mod, "_settings_manager", manager)
    yield manager


@pytest.fixture
def schema() -> EntitySchema:
    """The built-in entity schema."""
    return default_schema()


@pytest.fixture
def pattern(schema) -> CompiledPattern:
    """Filename matcher compiled from the built-in vocabularies."""
    return compile_pattern(schema)


@pytest.fixture
def sample_table(pattern, schema) -> DatasetTable:
    """
    Table built from SAMPLE_PATHS.

    Returns:
        A DatasetTable with 10 rows.
    """
    return build_table(SAMPLE_PATHS, pattern, schema)


@pytest.fixture
def bids_dataset_dir(tmp_path: Path) -> Path:
    """
    Create a small BIDS dataset on disk.

    Structure:
        dataset/
            dataset_description.json
            participants.tsv
            .hidden/sub-01_T1w.nii.gz
            sub-01/
                anat/
                    sub-01_T1w.nii.gz
                    sub-01_T1w.json
                func/
                    sub-01_task-rest_run-1_bold.nii.gz
                    sub-01_task-rest_run-1_bold.json
                    sub-01_task-rest_run-2_bold.nii.gz
                    .sub-01_task-rest_run-3_bold.nii.gz
            sub-02/
                other/
                    sub-02_T1w.nii.gz
            derivatives/
                fmriprep/
                    dataset_description.json
                    sub-01/
                        anat/
                            sub-01_rec-preproc_T1w.nii.gz

    Returns:
        Path to the dataset root.
    """
    root = tmp_path / "dataset"
    root.mkdir()

    with open(root / "dataset_description.json", "w", encoding="utf-8") as f:
        json.dump({"Name": "Test Dataset", "BIDSVersion": "1.8.0"}, f)
    (root / "participants.tsv").write_text("participant_id\tage\nsub-01\t25\nsub-02\t30\n")

    files = [
        ".hidden/sub-01_T1w.nii.gz",
        "sub-01/anat/sub-01_T1w.nii.gz",
        "sub-01/func/sub-01_task-rest_run-1_bold.nii.gz",
        "sub-01/func/sub-01_task-rest_run-2_bold.nii.gz",
        "sub-01/func/.sub-01_task-rest_run-3_bold.nii.gz",
        "sub-02/other/sub-02_T1w.nii.gz",
        "derivatives/fmriprep/sub-01/anat/sub-01_rec-preproc_T1w.nii.gz",
    ]
    for relative in files:
        file_path = root / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.touch()

    with open(root / "sub-01" / "anat" / "sub-01_T1w.json", "w", encoding="utf-8") as f:
        json.dump({"EchoTime": 0.003, "Manufacturer": "TestMaker"}, f)
    with open(root / "sub-01" / "func" / "sub-01_task-rest_run-1_bold.json", "w", encoding="utf-8") as f:
        json.dump({"RepetitionTime": 2.0, "TaskName": "rest", "SliceTiming": [0, 0.5]}, f)
    with open(root / "derivatives" / "fmriprep" / "dataset_description.json", "w", encoding="utf-8") as f:
        json.dump({"Name": "fMRIPrep", "BIDSVersion": "1.8.0", "DatasetType": "derivative"}, f)

    return root
