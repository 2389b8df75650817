import numpy as np
import pytest

from utils.errors import LoadError
from utils.loader import feature_columns, load_postures


def write(tmp_path, text, name="postures.csv"):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_sentinels_become_nan_and_columns_are_float(tmp_path):
    path = write(tmp_path, (
        "gesture_class,subject_id,X0,Y0,Z0\n"
        "1,0,1.5,?,3\n"
        "2,1,NA,2.5,.\n"
        "3,2,,4,5e-1\n"
    ))
    df = load_postures(path)

    assert all(df[c].dtype == np.float64 for c in df.columns)
    assert np.isnan(df.loc[0, "Y0"])
    assert np.isnan(df.loc[1, "X0"])
    assert np.isnan(df.loc[1, "Z0"])
    assert np.isnan(df.loc[2, "X0"])
    assert df.loc[2, "Z0"] == pytest.approx(0.5)
    assert df["gesture_class"].tolist() == [1.0, 2.0, 3.0]


def test_unparseable_cell_reports_row_and_column(tmp_path):
    path = write(tmp_path, (
        "gesture_class,subject_id,X0\n"
        "1,0,1.0\n"
        "1,0,abc\n"
    ))
    with pytest.raises(LoadError) as excinfo:
        load_postures(path)

    assert excinfo.value.row == 2
    assert excinfo.value.column == "X0"
    assert "abc" in str(excinfo.value)


def test_only_configured_sentinels_count_as_missing(tmp_path):
    path = write(tmp_path, "gesture_class,subject_id,X0\n1,0,?\n")
    with pytest.raises(LoadError):
        load_postures(path, missing_values=["", "NA"])


def test_malformed_row_is_a_load_error(tmp_path):
    path = write(tmp_path, (
        "gesture_class,subject_id,X0\n"
        "1,0,1.0\n"
        "1,0,1.0,2.0,3.0\n"
    ))
    with pytest.raises(LoadError):
        load_postures(path)


def test_column_aliases_rename_uci_header(tmp_path):
    path = write(tmp_path, "Class,User,X0,Y0\n1,0,1,2\n")
    df = load_postures(path, column_aliases={"Class": "gesture_class", "User": "subject_id"})

    assert list(df.columns) == ["gesture_class", "subject_id", "X0", "Y0"]
    assert feature_columns(df) == ["X0", "Y0"]


def test_short_row_is_a_load_error(tmp_path):
    path = write(tmp_path, (
        "gesture_class,subject_id,X0,Y0\n"
        "1,0,1.0,2.0\n"
        "1,0\n"
    ))
    with pytest.raises(LoadError) as excinfo:
        load_postures(path)

    assert excinfo.value.row == 2
    assert excinfo.value.column == "X0"


def test_empty_field_in_complete_row_is_still_missing(tmp_path):
    path = write(tmp_path, "gesture_class,subject_id,X0,Y0\n1,0,,2.0\n")
    df = load_postures(path)

    assert np.isnan(df.loc[0, "X0"])
    assert df.loc[0, "Y0"] == 2.0


@pytest.mark.parametrize("cell", ["inf", "-inf", "Infinity"])
def test_infinite_coordinate_is_a_load_error(tmp_path, cell):
    path = write(tmp_path, (
        "gesture_class,subject_id,X0\n"
        "1,0,1.0\n"
        f"1,0,{cell}\n"
    ))
    with pytest.raises(LoadError) as excinfo:
        load_postures(path)

    assert excinfo.value.row == 2
    assert excinfo.value.column == "X0"
