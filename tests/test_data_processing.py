import logging
import sys

import numpy as np
import pandas as pd
import pytest

from src.data_processing import (
    CONDITION_LEVELS,
    SAMPLE_COLUMNS,
    DataLoadError,
    DomainError,
    InputPaths,
    SchemaError,
    harmonize_copd,
    harmonize_hospital,
    harmonize_long_covid,
    inner_join,
    load_csv,
    load_raw_sources,
    unify_samples,
)
from src.data_processing.long_covid import assign_long_covid_condition


def _harmonized(raw):
    return (
        harmonize_hospital(raw['hospital']),
        harmonize_long_covid(raw['long_covid'], raw['long_covid_meta_copd'], raw['long_covid_meta']),
        harmonize_copd(raw['copd'], raw['copd_ages']),
    )


def test_load_csv_encoding(tmp_path):
    data = "\ufeffcol1,col2\n1,2\n"
    file = tmp_path / "bom.csv"
    file.write_text(data, encoding="utf-8")
    df = load_csv(str(file))
    assert list(df.columns) == ["col1", "col2"]
    assert df.loc[0, "col1"] == 1


def test_load_csv_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_csv(str(tmp_path / "absent.csv"))


def test_load_csv_inconsistent_columns(tmp_path):
    file = tmp_path / "ragged.csv"
    file.write_text("a,b\n1,2\n3,4,5\n", encoding="utf-8")
    with pytest.raises(DataLoadError):
        load_csv(str(file))


def test_load_csv_short_row(tmp_path):
    file = tmp_path / "short.csv"
    file.write_text(
        "sample_id,Age_less_than_90,CRTAC1_ELISA_nM,COVID,ICU_1\n1,50,2.0,0,0\n2,60\n",
        encoding="utf-8",
    )
    with pytest.raises(DataLoadError, match=r"lines \[3\]"):
        load_csv(str(file))


def test_load_csv_empty_trailing_field(tmp_path):
    file = tmp_path / "trailing.csv"
    file.write_text("a,b\n1,\n\n2,3\n", encoding="utf-8")
    df = load_csv(str(file))
    assert len(df) == 2
    assert pd.isna(df.loc[0, "b"])


def test_load_csv_not_utf8(tmp_path):
    file = tmp_path / "latin1.csv"
    file.write_bytes(b"name,value\ncaf\xe9,1\n")
    with pytest.raises(DataLoadError):
        load_csv(str(file))


def test_load_raw_sources(data_dir):
    raw = load_raw_sources(InputPaths.from_base_path(str(data_dir)))
    assert set(raw) == {'hospital', 'long_covid', 'long_covid_meta_copd',
                        'long_covid_meta', 'copd', 'copd_ages'}
    assert len(raw['hospital']) == 20
    assert raw['long_covid']['sample_id'].dtype == object


def test_input_paths_overrides(tmp_path):
    paths = InputPaths.from_base_path(str(tmp_path), copd='/elsewhere/copd.csv', hospital=None)
    assert paths.copd == '/elsewhere/copd.csv'
    assert paths.hospital == str(tmp_path / 'hospital_CRTAC1.csv')


def test_harmonize_hospital(raw_sources):
    raw = raw_sources['hospital']
    out = harmonize_hospital(raw)
    assert list(out.columns) == SAMPLE_COLUMNS
    assert len(out) == len(raw)
    assert out['patient_condition'].notna().all()
    assert out.loc[0, 'sample_id'] == 'hospital_1'
    assert out.loc[0, 'log10_CRTAC1_nm'] == pytest.approx(np.log10(raw.loc[0, 'CRTAC1_ELISA_nM']))
    assert (out['age'] == raw['Age_less_than_90']).all()


@pytest.mark.parametrize("covid, icu, expected", [
    (0, 0, "hospital, no COVID, no ICU"),
    (0, 1, "hospital, no COVID, ICU"),
    (1, 0, "hospital, COVID, no ICU"),
    (1, 1, "hospital, COVID, ICU"),
])
def test_hospital_condition_rule(covid, icu, expected):
    raw = pd.DataFrame({
        'sample_id': ['A'],
        'Age_less_than_90': [60],
        'CRTAC1_ELISA_nM': [10.0],
        'COVID': [covid],
        'ICU_1': [icu],
    })
    assert harmonize_hospital(raw).loc[0, 'patient_condition'] == expected


def test_hospital_invalid_flags(raw_sources):
    raw = raw_sources['hospital'].copy()
    raw['COVID'] = raw['COVID'].astype(float)
    raw.loc[2, 'COVID'] = np.nan
    raw.loc[4, 'ICU_1'] = 2
    with pytest.raises(SchemaError, match=r"\[3, 5\]"):
        harmonize_hospital(raw)


def test_hospital_missing_column(raw_sources):
    raw = raw_sources['hospital'].drop(columns=['ICU_1'])
    with pytest.raises(SchemaError, match="ICU_1"):
        harmonize_hospital(raw)


@pytest.mark.parametrize("value", [0.0, -1.5, np.nan])
def test_hospital_non_positive_concentration(raw_sources, value):
    raw = raw_sources['hospital'].copy()
    raw.loc[0, 'CRTAC1_ELISA_nM'] = value
    with pytest.raises(DomainError):
        harmonize_hospital(raw)


def test_harmonize_long_covid(raw_sources):
    out = harmonize_long_covid(
        raw_sources['long_covid'],
        raw_sources['long_covid_meta_copd'],
        raw_sources['long_covid_meta'],
    )
    assert list(out.columns) == SAMPLE_COLUMNS
    assert len(out) == 18
    assert 'LC99' not in set(out['sample_id'])
    by_id = out.set_index('sample_id')['patient_condition']
    assert by_id['H01'] == 'healthy'
    assert by_id['LC02'] == 'long COVID'
    assert by_id['LC07'] == 'long COVID + COPD'
    assert by_id['LC12'] == 'long COVID'
    assert out['patient_condition'].value_counts().to_dict() == {
        'long COVID': 8,
        'healthy': 5,
        'long COVID + COPD': 5,
    }


def test_long_covid_copd_override_runs_last():
    ids = pd.Series(['LC07', 'LC07', 'H01', 'HLC1'])
    flags = pd.Series(['Y', 'N', 'Y', 'N'])
    conditions = assign_long_covid_condition(ids, flags)
    assert conditions.tolist() == ['long COVID + COPD', 'long COVID', 'healthy', 'long COVID']


def test_long_covid_drop_is_logged(raw_sources, caplog):
    with caplog.at_level(logging.WARNING):
        harmonize_long_covid(
            raw_sources['long_covid'],
            raw_sources['long_covid_meta_copd'],
            raw_sources['long_covid_meta'],
        )
    assert "LC99" in caplog.text


def test_long_covid_strict_join(raw_sources):
    with pytest.raises(SchemaError, match="LC99"):
        harmonize_long_covid(
            raw_sources['long_covid'],
            raw_sources['long_covid_meta_copd'],
            raw_sources['long_covid_meta'],
            strict_joins=True,
        )


def test_long_covid_unlabelled_sample():
    crtac1 = pd.DataFrame({'sample_id': ['X01'], 'CRTAC1_ELISA_nM': [5.0]})
    meta_copd = pd.DataFrame({'sample_id': ['X01'], 'Age': [40], 'COPD': ['N']})
    meta = pd.DataFrame({'sample_id': [], 'Age': []})
    with pytest.raises(SchemaError, match="X01"):
        harmonize_long_covid(crtac1, meta_copd, meta)


def test_harmonize_copd(raw_sources):
    out = harmonize_copd(raw_sources['copd'], raw_sources['copd_ages'])
    assert list(out.columns) == SAMPLE_COLUMNS
    assert len(out) == 6
    assert out['sample_id'].tolist() == [f'copd_{i}' for i in range(1, 7)]
    assert (out['patient_condition'] == 'COPD').all()
    assert out['age'].tolist() == raw_sources['copd_ages']['Age'].tolist()


def test_inner_join_reports_dropped_keys():
    left = pd.DataFrame({'id': [1, 2, 3], 'x': [10, 20, 30]})
    right = pd.DataFrame({'key': [1, 3, 4], 'y': ['a', 'b', 'c']})
    result = inner_join(left, right, left_on='id', right_on='key')
    assert result.dropped_keys == [2]
    assert result.n_dropped == 1
    assert result.matched['x'].tolist() == [10, 30]
    assert result.matched['y'].tolist() == ['a', 'b']


def test_inner_join_mismatched_key_types():
    left = pd.DataFrame({'id': [1, 2, 3]})
    right = pd.DataFrame({'key': ['1', '2']})
    with pytest.raises(SchemaError, match="cannot join"):
        inner_join(left, right, left_on='id', right_on='key')


def test_unify_row_count(raw_sources):
    hospital, long_covid, copd = _harmonized(raw_sources)
    samples = unify_samples(hospital, long_covid, copd)
    assert len(samples) == len(hospital) + len(long_covid) + len(copd) == 44
    assert list(samples.columns) == SAMPLE_COLUMNS
    assert samples['sample_id'].is_unique


def test_unify_condition_order(raw_sources):
    samples = unify_samples(*_harmonized(raw_sources))
    dtype = samples['patient_condition'].dtype
    assert dtype.ordered
    assert list(dtype.categories) == CONDITION_LEVELS
    assert CONDITION_LEVELS[0] == 'healthy'


def test_unify_is_deterministic(raw_sources):
    tables = _harmonized(raw_sources)
    pd.testing.assert_frame_equal(unify_samples(*tables), unify_samples(*tables))


def test_unify_rejects_unknown_condition(raw_sources):
    hospital, long_covid, copd = _harmonized(raw_sources)
    copd.loc[0, 'patient_condition'] = 'asthma'
    with pytest.raises(SchemaError, match="asthma"):
        unify_samples(hospital, long_covid, copd)


def test_unify_rejects_missing_condition(raw_sources):
    hospital, long_covid, copd = _harmonized(raw_sources)
    copd.loc[0, 'patient_condition'] = None
    with pytest.raises(SchemaError):
        unify_samples(hospital, long_covid, copd)


def test_unify_rejects_schema_mismatch(raw_sources):
    hospital, long_covid, copd = _harmonized(raw_sources)
    with pytest.raises(SchemaError):
        unify_samples(hospital, long_covid, copd.assign(extra=1))


def test_unify_rejects_duplicate_ids(raw_sources):
    hospital, long_covid, copd = _harmonized(raw_sources)
    with pytest.raises(SchemaError, match="Duplicate"):
        unify_samples(hospital, long_covid, copd, copd)


def test_cli_harness(tmp_path, capsys, monkeypatch):
    left = tmp_path / "left.csv"
    right = tmp_path / "right.csv"
    pd.DataFrame({"SampleID": ["S1", "S2"]}).to_csv(left, index=False)
    pd.DataFrame({"SubjectID": ["S1"]}).to_csv(right, index=False)
    monkeypatch.setattr(sys, 'argv', [
        'utils.py', str(left), str(right), '--left-on', 'SampleID', '--right-on', 'SubjectID'
    ])
    from src.data_processing.utils import main
    main()
    captured = capsys.readouterr()
    assert "matched\t1" in captured.out
    assert "S2" in captured.out
