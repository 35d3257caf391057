import pytest
import numpy as np

matplotlib = pytest.importorskip('matplotlib')
matplotlib.use('Agg')

import daylightchart

_melbourne = -37.8136, 144.9631, -660

@pytest.fixture(scope='module')
def melbourne_2021():
    return daylightchart.daylight_table(2021, *_melbourne)

def test_daylight_table(melbourne_2021):
    days, noon, sunrise, sunset, daylight = melbourne_2021
    assert len(days) == 365
    assert days[0] == np.datetime64('2021-01-01')
    assert days[-1] == np.datetime64('2021-12-31')
    assert np.all(sunrise < noon)
    assert np.all(noon < sunset)
    assert np.allclose(sunset - sunrise, daylight)

def test_leap_year():
    days, *_ = daylightchart.daylight_table(2020, *_melbourne)
    assert len(days) == 366

def test_solstices(melbourne_2021):
    days, noon, sunrise, sunset, daylight = melbourne_2021
    winter, summer = daylightchart.find_solstices(daylight)
    # southern hemisphere: shortest day in June, longest in December
    assert abs(winter - 171) <= 3
    assert abs(summer - 354) <= 3

def test_equinoxes(melbourne_2021):
    days, noon, sunrise, sunset, daylight = melbourne_2021
    winter, summer = daylightchart.find_solstices(daylight)
    spring, fall = daylightchart.find_equinoxes(daylight, winter, summer)
    assert abs(spring - 264) <= 7 # Sep 22
    assert abs(fall - 78) <= 7 # Mar 20
    assert daylightchart.format_day(days[spring], '%b') == 'Sep'
    assert daylightchart.format_day(days[fall], '%b') == 'Mar'

def test_polar_table():
    days, noon, sunrise, sunset, daylight = daylightchart.daylight_table(2021, 78.22, 15.65, -60)
    assert np.all(np.isfinite(noon))
    assert np.any(np.isnan(sunrise))
    assert daylight.max() == pytest.approx(24)
    assert daylight.min() == 0

def test_main(tmp_path):
    out = tmp_path / 'daylight.png'
    assert daylightchart.main(['-lat','-37.8136','-lon','144.9631','-y','2021','-z','11','-o',str(out)]) == 0
    assert out.exists()
    assert out.stat().st_size > 0

def test_default_timezone():
    args = daylightchart._parse_args(['-lon','144.9631'])
    assert args.timezone == 10
    args = daylightchart._parse_args(['-lon','-74','-z','-5'])
    assert args.timezone == -5
