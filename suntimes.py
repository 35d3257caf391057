# The MIT License (MIT)
#
# Copyright (c) 2025 Samuel Bear Powell
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import os, sys, argparse, re
import numpy as np
import time,datetime,warnings

try:
    #scipy is required for numba's linear algebra routines to work
    import numba, numba.extending, scipy
except ImportError:
    numba = None

VERSION = '1.0.0'

_arg_parser = argparse.ArgumentParser(prog='suntimes',description='Compute solar noon, sunrise, sunset and solar elevation given the date and location')
_arg_parser.add_argument('--version',action='version',version=f'%(prog)s {VERSION}')
_arg_parser.add_argument('--citation',action='store_true',help='Print citation information')
_arg_parser.add_argument('-t','--time',type=str,default='now',help='"now" or local date and time in ISO8601 format or a (UTC) POSIX timestamp')
_arg_parser.add_argument('-lat','--latitude',type=float,default=51.48,help='observer latitude, in decimal degrees, positive for north')
_arg_parser.add_argument('-lon','--longitude',type=float,default=0.0,help='observer longitude, in decimal degrees, positive for east')
_arg_parser.add_argument('-z','--tz-offset',type=float,default=None,help='minutes to add to local time to reach UTC, positive west of Greenwich (e.g. -420 for UTC+7). Defaults to the offset given in --time, or the host timezone')
_arg_parser.add_argument('-r','--radians',action='store_true',help='Output angles in radians instead of degrees')
_arg_parser.add_argument('--csv',action='store_true',help='Comma separated values (time,tz_offset,lat,lon,noon,sunrise,sunset,daylight,dec,eot,elevation)')
_arg_parser.add_argument('--jit',action='store_true',help='Enable Numba acceleration (likely to cause slowdown for a single computation!)')

def empty_decorator(f = None, *args, **kw):
    if callable(f):
        return f
    return empty_decorator

if numba is not None:
    # register_jitable informs numba that a function may be compiled when
    # called from jit'ed code, but doesn't jit it by default
    register_jitable = numba.extending.register_jitable

    #njit compiles code -- we use this for the broadcast loops
    njit = numba.njit

    _ENABLE_JIT = not numba.config.DISABLE_JIT and not os.environ.get('NUMBA_DISABLE_JIT',False)
else:
    #if numba is not available, use empty_decorator instead
    njit = empty_decorator
    register_jitable = empty_decorator
    _ENABLE_JIT = False


def enable_jit(en = True):
    global _ENABLE_JIT
    if en and numba is None:
        print('WARNING: JIT unavailable (requires numba and scipy)',file=sys.stderr)
    #We set the _ENABLE_JIT flag regardless of whether numba is available, just to test that code path!
    _ENABLE_JIT = en

def disable_jit():
    enable_jit(False)

def jit_enabled():
    return _ENABLE_JIT

class ApproximationWarning(UserWarning):
    """The date lies outside 1901-2099, where the Julian Date approximation holds"""

class NoSunriseSunsetError(ValueError):
    """The sun does not cross the horizon on (some of) the requested days.

    Attributes
    ----------
    cos_hour_angle : ndarray
        cosine of the sunrise hour angle, as computed. Values below -1 mean
        the sun never sets (polar day), values above 1 mean it never rises
        (polar night).
    """
    def __init__(self, message, cos_hour_angle):
        super().__init__(message)
        self.cos_hour_angle = cos_hour_angle

    @property
    def polar_day(self):
        return np.asarray(self.cos_hour_angle) < -1

    @property
    def polar_night(self):
        return np.asarray(self.cos_hour_angle) > 1

class PolarDayError(NoSunriseSunsetError):
    """The sun stays above the horizon all day"""

class PolarNightError(NoSunriseSunsetError):
    """The sun stays below the horizon all day"""

NORMAL, POLAR_DAY, POLAR_NIGHT = 'normal', 'polar_day', 'polar_night'

def main(args=None, **kwargs):
    """Run suntimes command-line tool.

    If run without arguments, uses sys.argv, otherwise arguments may be
    specified by a list of strings to be parsed, e.g.:
        main(['--time','2020-05-09','-lat','-6.2','-lon','106.8','-z','-420'])
    or as keyword arguments:
        main(time='now')
    or as an argparse.Namespace object (as produced by argparse.ArgumentParser)

    Parameters
    ----------
    args : list of str or argparse.Namespace, optional
        Command-line arguments. sys.argv is used if not provided.
    version : bool
        If true, print the version information and quit
    citation : bool
        If true, print citation information and quit
    time : str
        "now" or local date and time in ISO8601 format or a UTC POSIX timestamp
    latitude : float
        observer latitude in decimal degrees, positive for north
    longitude : float
        observer longitude in decimal degrees, positive for east
    tz_offset : float
        minutes to add to local time to reach UTC, positive west of Greenwich
    radians : bool
        If True, output angles in radians instead of degrees
    csv : bool
        If True, output as comma separated values (time, tz_offset, lat, lon, noon, sunrise, sunset, daylight, dec, eot, elevation)
    jit : bool
        If True, enable Numba acceleration
    """
    if args is None and not kwargs:
        args = _arg_parser.parse_args()
    elif isinstance(args,(list,tuple)):
        args = _arg_parser.parse_args(args)
    elif args is None:
        args = _arg_parser.parse_args([])

    for kw in kwargs:
        setattr(args,kw,kwargs[kw])

    if args.citation:
        print("Algorithm:")
        print("  NOAA Global Monitoring Laboratory, \"Solar Calculation Details\",")
        print("  https://gml.noaa.gov/grad/solcalc/calcdetails.html")
        print("  based on Jean Meeus, \"Astronomical Algorithms\", Willmann-Bell, 1991")
        return 0

    enable_jit(args.jit)

    #resolve "now" and the timezone once, so that every quantity refers to the same instant
    t, tz = to_local_time(args.time, args.tz_offset)
    local = np.datetime64(int(round(t*1e6)),'us')
    lat, lon = args.latitude, args.longitude

    noon, sunrise, sunset = sun_events(local, lat, lon, tz, polar='nan')
    kind = day_type(local, lat, tz)
    daylight = daylight_seconds(local, lat, tz)
    eot, dec = solar_position(local, tz)
    elev = solar_elevation_angle(local, lat, lon, tz, radians=args.radians)
    if args.radians:
        dec = np.deg2rad(dec)

    ts = _local_time_to_string(t)
    if args.csv:
        #machine readable
        print(f'{ts}, {tz:g}, {lat}, {lon}, {noon*86400:0.0f}, {sunrise*86400:0.0f}, {sunset*86400:0.0f}, {daylight:0.0f}, {dec:0.6f}, {eot:0.6f}, {elev:0.6f}')
    else:
        dr = 'rad' if args.radians else 'deg'
        print(f"Computing sun times at T = {ts} (UTC{-tz/60:+g})")
        print(f"Lat, Lon = {lat} deg, {lon} deg")
        print("Results:")
        print(f"Solar noon = {format_day_offset(noon*86400)}")
        if kind == NORMAL:
            print(f"Sunrise, sunset = {format_day_offset(sunrise*86400)}, {format_day_offset(sunset*86400)}")
        else:
            print(f"Sunrise, sunset = none ({kind.replace('_',' ')})")
        print(f"Day length = {daylight/3600:0.4f} h")
        print(f"Declination = {dec:0.6f} {dr}, equation of time = {eot:0.6f} min")
        print(f"Elevation = {elev:0.6f} {dr}")

    return 0

def format_day_offset(seconds):
    '''Format seconds since local midnight as HH:MM:SS, rounded to the second
    Offsets that fall on the previous or next day get a "(-1 day)" / "(+1 day)" suffix
    '''
    if not np.isfinite(seconds):
        return '--:--:--'
    day, s = divmod(int(round(float(seconds))), 86400)
    hour, s = divmod(s, 3600)
    minute, sec = divmod(s, 60)
    text = f'{hour:02}:{minute:02}:{sec:02}'
    if day:
        text += f' ({day:+d} day)'
    return text

## Calendar and time conversion ##

def _date_to_rd(year, month, day):
    '''Convert year, month, day to rata die (day number, 0 = 1970-01-01)
    Based on the algorithm in: "Euclidean affine functions and their application to calendar algorithms" C. Neri, L. Schneider (2022) https://doi.org/10.1002/spe.3172
    Python integers don't overflow, so the 32-bit types of the reference implementation aren't needed
    '''
    s = 82
    K = 719468 + 146097 * s
    L = 400 * s
    # Map. (Notice the year correction.)
    J = int(month <= 2)
    Y = year + L - J
    M = month + 12 if J else month
    D = day - 1
    C = Y // 100
    # Rata die.
    y_star = 1461 * Y // 4 - C + C // 4
    m_star = (979 * M - 2919) // 32
    # Rata die shift.
    return y_star + m_star + D - K

def _rd_to_date(rd):
    '''convert integer rata die (day number, 0 = 1970-01-01) to year, month, day
    "Euclidean affine functions and their application to calendar algorithms" C. Neri, L. Schneider (2022) https://doi.org/10.1002/spe.3172
    '''
    s = 82
    K = 719468 + 146097 * s
    L = 400 * s
    # Rata die shift.
    N = int(rd) + K
    # Century.
    C, N_C = divmod(4 * N + 3, 146097)
    N_C //= 4
    # Year.
    Z, N_Y = divmod(2939745 * (4 * N_C + 3), 4294967296)
    N_Y = N_Y // 2939745 // 4
    Y = 100 * C + Z
    # Month and day.
    M, D = divmod(2141 * N_Y + 197913, 65536)
    D //= 2141
    # Map. (Notice the year correction.)
    J = int(N_Y >= 306)
    return (Y - L + J, M - 12 if J else M, D + 1)

# the Julian Date formula counts calendar days from this date
_RD_1900 = _date_to_rd(1900, 1, 1)
_JD_1900_APPROX = 2415018.5
_JD_2000 = 2451545.0
_JULIAN_CENTURY = 36525.0
# offsets beyond UTC-12:00 (US Minor Outlying Islands) and UTC+14:00 (Kiribati) don't exist, we accept up to 14 hours either way
_MAX_TZ_OFFSET = 14*60
_UNIX_EPOCH = datetime.datetime(1970, 1, 1)

_iso8601_re = re.compile(r'([+-]?\d{1,4})-?([01]\d)-?([0-3]\d)(?:[T ]([012]\d):?([0-5]\d)(?::?([0-6]\d(?:\.\d+)?))?)?(Z|([+-]\d{2})(?::?(\d{2}))?)?')
def _string_to_local_time(s):
    '''parse a date/time string to (seconds, tz_offset, utc)
    strings may be:
     - POSIX timestamp string -- a UTC instant, utc is True
     - ISO 8601 formatted date or date and time (including negative years) -- local civil time, utc is False
    tz_offset is in minutes to add to local time to reach UTC, nan if the string doesn't specify one
    '''
    if s.strip() == 'now':
        return time.time(), np.nan, True
    try:
        return float(s), np.nan, True
    except ValueError:
        pass
    m = _iso8601_re.fullmatch(s.strip())
    if not m:
        raise ValueError('Could not parse date/time string (must be "now" or float or ISO8601)')
    year,month,day,hour,minute,second,tz_str,tz_hour,tz_minute = m.groups()
    year, month, day = int(year),int(month),int(day)
    hour = int(hour) if hour is not None else 0
    minute = int(minute) if minute is not None else 0
    second = float(second) if second is not None else 0.0
    rd = _date_to_rd(year, month, day)
    #validate the date using _rd_to_date(_date_to_rd()) round trip
    if _rd_to_date(rd) != (year, month, day):
        raise ValueError('Invalid date')
    if hour > 23 or second >= 60:
        raise ValueError('Invalid time')
    if tz_str is None:
        tz = np.nan
    elif tz_str == 'Z':
        tz = 0.0
    else:
        tz_hour = abs(int(tz_hour))
        tz_minute = int(tz_minute) if tz_minute is not None else 0
        if tz_minute > 59:
            raise ValueError('Invalid timezone')
        utc_offset = tz_hour*60 + tz_minute
        if tz_str.startswith('-'):
            utc_offset = -utc_offset
        if utc_offset < -12*60 or utc_offset > _MAX_TZ_OFFSET:
            raise ValueError('Invalid timezone')
        tz = -float(utc_offset)
    return rd*86400 + hour*3600 + minute*60 + second, tz, False

def _object_to_local_time(d):
    '''convert a datetime.datetime, datetime.date, string, datetime64 or number to (seconds, tz_offset, utc)'''
    if isinstance(d, str):
        return _string_to_local_time(d)
    if isinstance(d, np.datetime64):
        return d.astype('datetime64[us]').astype(np.int64)/1e6, np.nan, False
    if isinstance(d, datetime.datetime):
        offset = d.utcoffset()
        tz = np.nan if offset is None else -offset.total_seconds()/60
    elif isinstance(d, datetime.date):
        d = datetime.datetime(d.year, d.month, d.day)
        tz = np.nan
    else:
        #POSIX timestamp
        return float(d), np.nan, True
    tod = d.hour*3600 + d.minute*60 + d.second + d.microsecond/1e6
    return _date_to_rd(d.year, d.month, d.day)*86400 + tod, tz, False

#we can't use numba to accelerate parsing, so use np.vectorize here
_string_to_local_time_v = np.vectorize(_string_to_local_time, otypes=[float, float, bool])
_object_to_local_time_v = np.vectorize(_object_to_local_time, otypes=[float, float, bool])

def _host_tz_offset(t, utc):
    '''UTC offset of the host timezone at the given time, in minutes to add to local time to reach UTC'''
    if utc:
        local = datetime.datetime.fromtimestamp(t, datetime.timezone.utc).astimezone()
    else:
        local = (_UNIX_EPOCH + datetime.timedelta(seconds=t)).astimezone()
    return -local.utcoffset().total_seconds()/60

_host_tz_offset_v = np.vectorize(_host_tz_offset, otypes=[float])

def to_local_time(dt, tz_offset=None):
    '''Convert various date/time formats to local civil time

    Parameters
    ----------
    dt : array_like of datetime, date, datetime64, str, or float
        datetime.datetime (naive or aware), datetime.date (midnight), numpy.datetime64 (local time),
        "now", ISO8601 strings (with an optional UTC offset), or POSIX timestamps (float or int)
    tz_offset : None or array_like of float, optional
        minutes to add to local time to reach UTC, positive west of Greenwich (UTC+7 is -420).
        If given, it overrides any offset carried by dt. Otherwise the offset of an aware datetime or
        an ISO8601 string is used, and failing that the host timezone's offset on that date.

    Returns
    -------
    t : ndarray
        local civil time, in seconds since 1970-01-01T00:00 on the local calendar
    tz_offset : ndarray
        minutes to add to local time to reach UTC
    '''
    dt = np.asarray(dt)

    if np.issubdtype(dt.dtype, np.str_):
        t, tz, utc = _string_to_local_time_v(dt)
    elif dt.dtype == object:
        t, tz, utc = _object_to_local_time_v(dt)
    elif np.issubdtype(dt.dtype, np.datetime64):
        t = dt.astype('datetime64[us]').astype(np.int64)/1e6
        tz, utc = np.full(t.shape, np.nan), np.zeros(t.shape, bool)
    else:
        t = dt.astype(np.float64)
        tz, utc = np.full(t.shape, np.nan), np.ones(t.shape, bool)

    if tz_offset is not None:
        tz = np.asarray(tz_offset, dtype=np.float64)
    t, tz, utc = (np.array(a) for a in np.broadcast_arrays(t, tz, utc))
    missing = np.isnan(tz)
    if np.any(missing):
        tz[missing] = _host_tz_offset_v(t[missing], utc[missing])
    if not np.all(np.abs(tz) <= _MAX_TZ_OFFSET):
        raise ValueError('Invalid timezone offset (must be within 14 hours of UTC)')
    t = np.where(utc, t - tz*60, t)
    return t[()], tz[()]

def _local_time_to_string(t):
    '''Format local seconds as ISO8601 with millisecond precision'''
    #we need our own because datetime.datetime doesn't support dates before year 1
    rd, ms = divmod(int(round(float(t)*1000)), 86400000)
    year, month, day = _rd_to_date(rd)
    hour, ms = divmod(ms, 3600000) #hour, ms into the hour
    minute, ms = divmod(ms, 60000) #minute, ms into the minute
    sec, ms = divmod(ms, 1000) #second, millisecond
    return f'{year:04}-{month:02}-{day:02}T{hour:02}:{minute:02}:{sec:02}.{ms:03}'

def _day_offset_to_datetime64(t, seconds):
    '''local midnight of the day containing t, plus seconds rounded to the nearest second
    nan seconds give NaT
    '''
    t, seconds = np.broadcast_arrays(np.asarray(t, dtype=np.float64), np.asarray(seconds, dtype=np.float64))
    midnight = np.asarray(np.floor(t/86400)*86400).astype(np.int64).astype('datetime64[s]')
    valid = np.isfinite(seconds)
    offset = np.where(valid, np.round(seconds), 0).astype(np.int64).astype('timedelta64[s]')
    result = np.where(valid, midnight + offset, np.datetime64('NaT', 's'))
    return result[()]

def _check_lat_lon(latitude, longitude):
    lat = np.asarray(latitude, dtype=np.float64)
    if not np.all(np.abs(lat) <= 90):
        raise ValueError('Invalid latitude (must be within [-90, 90] degrees)')
    if longitude is None:
        return lat, None
    lon = np.asarray(longitude, dtype=np.float64)
    if not np.all(np.abs(lon) <= 180):
        raise ValueError('Invalid longitude (must be within [-180, 180] degrees)')
    return lat, lon

def _check_approximation_range(t, stacklevel=3):
    days = np.floor(np.asarray(t, dtype=np.float64)/86400)
    days = days[np.isfinite(days)]
    years = days.astype(np.int64).astype('datetime64[D]').astype('datetime64[Y]').astype(np.int64) + 1970
    if np.any((years < 1901) | (years > 2099)):
        warnings.warn('Julian Date approximation is only valid for 1901-2099, results outside that range lose accuracy',
                      ApproximationWarning, stacklevel=stacklevel)

def _check_polar(cos_ha, polar):
    if polar not in ('raise', 'nan'):
        raise ValueError("polar must be 'raise' or 'nan'")
    if polar == 'nan':
        return
    day, night = np.any(cos_ha < -1), np.any(cos_ha > 1)
    if day and night:
        raise NoSunriseSunsetError('The sun does not rise or set on some of the given days', cos_ha)
    if day:
        raise PolarDayError('The sun never sets (polar day)', cos_ha)
    if night:
        raise PolarNightError('The sun never rises (polar night)', cos_ha)

## Julian date and solar position ##

@register_jitable
def _day_fraction(t):
    """Fraction of the local day elapsed at local seconds t, to the minute: 6 o'clock is 0.25"""
    day = np.floor(t / 86400)
    tod = t - day * 86400
    hours = np.floor(tod / 3600)
    minutes = np.floor((tod - hours * 3600) / 60)
    return (minutes / 60 + hours) / 24

@register_jitable
def _julian_date(t, tz_offset):
    """Calculate the Julian Date from local seconds and the timezone offset (minutes to add to reach UTC)"""
    days = np.floor(t / 86400) - _RD_1900 #calendar days since 1900-01-01
    # +2 includes the end date and a bit of rounding
    return days + _JD_1900_APPROX + 2 + _day_fraction(t) - (-1 * tz_offset) / 1440

_julian_date_vec = np.vectorize(_julian_date, otypes=[float])

@njit
def _julian_date_vec_jit(t, tz_offset):
    out_shape = t.shape
    args_flat = t.flat, tz_offset.flat
    n = len(args_flat[0])
    jd = np.empty(n, dtype=np.float64)
    for i, arg in enumerate(zip(*args_flat)):
        jd[i] = _julian_date(*arg)
    return jd.reshape(out_shape)

@register_jitable
def _julian_century(jd):
    """Calculate the Julian Century (since J2000.0) from the Julian Date"""
    return (jd - _JD_2000) / _JULIAN_CENTURY

@register_jitable
def _sun_geometry(jc):
    """Geometric mean longitude and mean anomaly of the sun (degrees), eccentricity of earth's orbit, and corrected obliquity of the ecliptic (degrees)"""
    L0 = (280.46646 + jc*(36000.76983 + jc*0.0003032)) % 360
    M = 357.52911 + jc*(35999.05029 - 0.0001537*jc)
    e = 0.016708634 - jc*(0.000042037 + 0.0000001267*jc)
    epsilon0 = 23 + (26 + (21.448 - jc*(46.815 + jc*(0.00059 - jc*0.001813)))/60)/60
    omega = 125.04 - 1934.136*jc #longitude of the ascending node of the moon's orbit
    epsilon = epsilon0 + 0.00256*np.cos(np.deg2rad(omega))
    return L0, M, e, epsilon

@register_jitable
def _equation_of_center(jc, M):
    """Sun's equation of center (degrees) from the mean anomaly"""
    Mr = np.deg2rad(M)
    return (np.sin(Mr)*(1.914602 - jc*(0.004817 + 0.000014*jc))
            + np.sin(2*Mr)*(0.019993 - 0.000101*jc)
            + np.sin(3*Mr)*0.000289)

@register_jitable
def _apparent_longitude(jc, L0, C):
    """Apparent longitude of the sun (degrees): true longitude corrected for aberration and nutation"""
    omega = 125.04 - 1934.136*jc
    return L0 + C - 0.00569 - 0.00478*np.sin(np.deg2rad(omega))

@register_jitable
def _declination(epsilon, llambda):
    return np.rad2deg(np.arcsin(np.sin(np.deg2rad(epsilon))*np.sin(np.deg2rad(llambda))))

@register_jitable
def _equation_of_time(L0, M, e, epsilon):
    """Equation of time, in minutes: apparent minus mean solar time"""
    y = np.tan(np.deg2rad(epsilon)/2)**2
    L0r, Mr = np.deg2rad(L0), np.deg2rad(M)
    E = (y*np.sin(2*L0r) - 2*e*np.sin(Mr) + 4*e*y*np.sin(Mr)*np.cos(2*L0r)
         - 0.5*y*y*np.sin(4*L0r) - 1.25*e*e*np.sin(2*Mr))
    return 4*np.rad2deg(E) #4 minutes of time per degree

@register_jitable
def _solar_position(jd):
    """Equation of time (minutes) and declination (degrees)"""
    jc = _julian_century(jd)
    L0, M, e, epsilon = _sun_geometry(jc)
    C = _equation_of_center(jc, M)
    llambda = _apparent_longitude(jc, L0, C)
    return _equation_of_time(L0, M, e, epsilon), _declination(epsilon, llambda)

_solar_position_vec = np.vectorize(_solar_position, otypes=[float, float])

@njit
def _solar_position_vec_jit(jd):
    out_shape = jd.shape
    jd_flat = jd.flat
    n = len(jd_flat)
    eot, dec = np.empty(n), np.empty(n)
    for i, x in enumerate(jd_flat):
        eot[i], dec[i] = _solar_position(x)
    return eot.reshape(out_shape), dec.reshape(out_shape)

## Sunrise, sunset and solar noon ##

# apparent radius of the sun + atmospheric refraction at the horizon
_SUNRISE_ZENITH = 90.833

@register_jitable
def _sunrise_cos_hour_angle(latitude, delta):
    """Cosine of the sunrise hour angle. Outside [-1, 1] the sun doesn't cross the horizon"""
    phi, d = np.deg2rad(latitude), np.deg2rad(delta)
    return np.cos(np.deg2rad(_SUNRISE_ZENITH))/(np.cos(phi)*np.cos(d)) - np.tan(phi)*np.tan(d)

@register_jitable
def _solar_noon(longitude, eot, tz_offset):
    """Solar noon, as a fraction of the local day"""
    return (720 - 4*longitude - eot + tz_offset*-1)/1440

@register_jitable
def _sun_events(t, latitude, longitude, tz_offset):
    """solar noon, sunrise and sunset as fractions of the local day, and the cosine of the sunrise hour angle"""
    jd = _julian_date(t, tz_offset)
    eot, delta = _solar_position(jd)
    cos_ha = _sunrise_cos_hour_angle(latitude, delta)
    if cos_ha < -1 or cos_ha > 1:
        ha = np.nan
    else:
        ha = np.rad2deg(np.arccos(cos_ha))
    noon = _solar_noon(longitude, eot, tz_offset)
    half_day = ha*4/1440 #4 minutes of time per degree of hour angle
    return noon, noon - half_day, noon + half_day, cos_ha

_sun_events_vec = np.vectorize(_sun_events, otypes=[float, float, float, float])

@njit
def _sun_events_vec_jit(t, lat, lon, tz):
    '''Compute noon, sunrise, sunset, cos(H); vectorized for use with Numba
    Arguments must be broadcast before calling: Numba's broadcast does not match Numpy's with scalar arguments
    '''
    out_shape = t.shape
    args_flat = t.flat, lat.flat, lon.flat, tz.flat
    n = len(args_flat[0])
    noon, rise, sets, cos_ha = np.empty(n), np.empty(n), np.empty(n), np.empty(n)
    for i, arg in enumerate(zip(*args_flat)):
        noon[i], rise[i], sets[i], cos_ha[i] = _sun_events(*arg)
    return noon.reshape(out_shape), rise.reshape(out_shape), sets.reshape(out_shape), cos_ha.reshape(out_shape)

## Solar elevation ##

@register_jitable
def _refraction_correction(e):
    """Approximate atmospheric refraction (degrees) at geometric elevation e (degrees)"""
    if e > 85:
        r = 0.0
    elif e > 5:
        te = np.tan(np.deg2rad(e))
        r = 58.1/te - 0.07/te**3 + 0.000086/te**5
    elif e > -0.575:
        #polynomial fit near the horizon, where 1/tan(e) blows up
        r = 1735 + e*(-518.2 + e*(103.4 + e*(-12.79 + e*0.711)))
    else:
        r = -20.772/np.tan(np.deg2rad(e))
    return r/3600 #arcseconds to degrees

_refraction_correction_vec = np.vectorize(_refraction_correction, otypes=[float])

@register_jitable
def _solar_elevation(t, latitude, longitude, tz_offset):
    """Geometric solar elevation and its refraction correction, both in degrees"""
    jd = _julian_date(t, tz_offset)
    eot, delta = _solar_position(jd)
    true_solar_time = np.fmod(_day_fraction(t)*1440 + eot + 4*longitude - 60*(-1*tz_offset/60), 1440)
    #hour angle, negative in the morning
    if true_solar_time/4 < 0:
        H = true_solar_time/4 + 180
    else:
        H = true_solar_time/4 - 180
    phi, d, Hr = np.deg2rad(latitude), np.deg2rad(delta), np.deg2rad(H)
    cos_zenith = np.sin(phi)*np.sin(d) + np.cos(phi)*np.cos(d)*np.cos(Hr)
    cos_zenith = min(max(cos_zenith, -1.0), 1.0)
    e0 = 90 - np.rad2deg(np.arccos(cos_zenith))
    return e0, _refraction_correction(e0)

_solar_elevation_vec = np.vectorize(_solar_elevation, otypes=[float, float])

@njit
def _solar_elevation_vec_jit(t, lat, lon, tz):
    '''Compute elevation and refraction; vectorized for use with Numba
    Arguments must be broadcast before calling: Numba's broadcast does not match Numpy's with scalar arguments
    '''
    out_shape = t.shape
    args_flat = t.flat, lat.flat, lon.flat, tz.flat
    n = len(args_flat[0])
    e0, delta_e = np.empty(n), np.empty(n)
    for i, arg in enumerate(zip(*args_flat)):
        e0[i], delta_e[i] = _solar_elevation(*arg)
    return e0.reshape(out_shape), delta_e.reshape(out_shape)

def _apply(jit, vec, vec_jit, *args):
    '''run a vectorized kernel, through numba if jit is enabled, and unwrap scalar results'''
    if jit is None:
        jit = _ENABLE_JIT
    if jit:
        args = [np.array(a, dtype=np.float64) for a in np.broadcast_arrays(*args)]
        out = vec_jit(*args)
    else:
        out = vec(*args)
    if isinstance(out, tuple):
        return tuple(a[()] for a in out) #unwrap np.array() from scalars
    return out[()]

## Public interface ##

def julian_date(dt, tz_offset=None, jit=None):
    """Convert local dates and times to Julian Dates

    The day fraction is taken to the minute. The underlying approximation is
    valid for 1901-2099: other dates are computed anyway, with an
    ApproximationWarning.

    Parameters
    ----------
    dt : array_like
        datetime.datetime, datetime.date, numpy.datetime64, ISO8601 strings, or POSIX timestamps (float or int)
    tz_offset : None or array_like of float, optional
        minutes to add to local time to reach UTC (UTC+7 is -420), see to_local_time
    jit : bool or None
        override module jit settings, to True/False to enable/disable numba acceleration

    Returns
    -------
    jd : ndarray
        fractional Julian Dates
    """
    t, tz = to_local_time(dt, tz_offset)
    _check_approximation_range(t)
    return _apply(jit, _julian_date_vec, _julian_date_vec_jit, t, tz)

def solar_position(dt, tz_offset=None, jit=None):
    """Compute the equation of time and the solar declination

    Parameters
    ----------
    dt : array_like
        datetime.datetime, datetime.date, numpy.datetime64, ISO8601 strings, or POSIX timestamps (float or int)
    tz_offset : None or array_like of float, optional
        minutes to add to local time to reach UTC (UTC+7 is -420), see to_local_time
    jit : bool or None
        override module jit settings

    Returns
    -------
    equation_of_time : ndarray, minutes, apparent minus mean solar time
    declination : ndarray, degrees, positive north of the celestial equator
    """
    t, tz = to_local_time(dt, tz_offset)
    _check_approximation_range(t)
    jd = _apply(jit, _julian_date_vec, _julian_date_vec_jit, t, tz)
    return _apply(jit, _solar_position_vec, _solar_position_vec_jit, jd)

def _cos_hour_angle(dt, latitude, tz_offset, jit):
    t, tz = to_local_time(dt, tz_offset)
    lat, _ = _check_lat_lon(latitude, None)
    _check_approximation_range(t, 4)
    jd = _apply(jit, _julian_date_vec, _julian_date_vec_jit, t, tz)
    eot, delta = _apply(jit, _solar_position_vec, _solar_position_vec_jit, jd)
    return _sunrise_cos_hour_angle(lat, delta)

def sunrise_hour_angle(dt, latitude, tz_offset=None, polar='raise', jit=None):
    """Compute the hour angle of sunrise (and, negated, of sunset)

    Parameters
    ----------
    dt : array_like
        datetime.datetime, datetime.date, numpy.datetime64, ISO8601 strings, or POSIX timestamps (float or int)
    latitude : array_like of float
        decimal degrees, positive for north of the equator
    tz_offset : None or array_like of float, optional
        minutes to add to local time to reach UTC (UTC+7 is -420), see to_local_time
    polar : 'raise' or 'nan'
        on days without sunrise, raise PolarDayError/PolarNightError or return nan
    jit : bool or None
        override module jit settings

    Returns
    -------
    hour_angle : ndarray, degrees
    """
    cos_ha = _cos_hour_angle(dt, latitude, tz_offset, jit)
    _check_polar(cos_ha, polar)
    cos_ha = np.where((cos_ha < -1) | (cos_ha > 1), np.nan, cos_ha)
    return np.rad2deg(np.arccos(cos_ha))[()]

def day_type(dt, latitude, tz_offset=None, jit=None):
    """Classify days as NORMAL ('normal'), POLAR_DAY ('polar_day') or POLAR_NIGHT ('polar_night')"""
    cos_ha = _cos_hour_angle(dt, latitude, tz_offset, jit)
    return np.where(cos_ha < -1, POLAR_DAY, np.where(cos_ha > 1, POLAR_NIGHT, NORMAL))[()]

def daylight_seconds(dt, latitude, tz_offset=None, jit=None):
    """Time between sunrise and sunset, in seconds: 86400 on polar days, 0 on polar nights"""
    cos_ha = _cos_hour_angle(dt, latitude, tz_offset, jit)
    ha = np.rad2deg(np.arccos(np.clip(cos_ha, -1, 1)))
    # 2 x 4 minutes of time per degree of hour angle
    return (ha*480)[()]

def _events(dt, latitude, longitude, tz_offset, polar, jit):
    t, tz = to_local_time(dt, tz_offset)
    lat, lon = _check_lat_lon(latitude, longitude)
    _check_approximation_range(t, 4)
    noon, sunrise, sunset, cos_ha = _apply(jit, _sun_events_vec, _sun_events_vec_jit, t, lat, lon, tz)
    if polar is not None:
        _check_polar(cos_ha, polar)
    return t, noon, sunrise, sunset

def sun_events(dt, latitude, longitude, tz_offset=None, polar='raise', jit=None):
    """Compute solar noon, sunrise and sunset as fractions of the local day

    Sunrise and sunset are when the sun's upper limb crosses the horizon,
    including atmospheric refraction (a zenith angle of 90.833 degrees).

    Parameters
    ----------
    dt : array_like
        datetime.datetime, datetime.date, numpy.datetime64, ISO8601 strings, or POSIX timestamps (float or int)
        The local calendar date of each entry picks the day; date-only inputs mean local midnight
    latitude, longitude : array_like of float
        decimal degrees, positive for north of the equator and east of Greenwich
    tz_offset : None or array_like of float, optional
        minutes to add to local time to reach UTC (UTC+7 is -420), see to_local_time
    polar : 'raise' or 'nan'
        on days without sunrise or sunset, raise PolarDayError/PolarNightError (NoSunriseSunsetError
        if both kinds occur) or return nan for sunrise and sunset
    jit : bool or None
        override module jit settings

    Returns
    -------
    solar_noon : ndarray
    sunrise : ndarray
    sunset : ndarray
        fractions of the day since local midnight; may fall outside [0, 1) when the
        timezone is far from the observer's meridian
    """
    return _events(dt, latitude, longitude, tz_offset, polar, jit)[1:]

def solar_noon_fraction(dt, latitude, longitude, tz_offset=None, jit=None):
    """Solar noon as a fraction of the local day, see sun_events"""
    return _events(dt, latitude, longitude, tz_offset, None, jit)[1]

def solar_noon_seconds(dt, latitude, longitude, tz_offset=None, jit=None):
    """Solar noon in seconds since local midnight, see sun_events"""
    return solar_noon_fraction(dt, latitude, longitude, tz_offset, jit)*86400

def solar_noon_time(dt, latitude, longitude, tz_offset=None, jit=None):
    """Solar noon as a local numpy.datetime64, to the nearest second, see sun_events"""
    t, noon = _events(dt, latitude, longitude, tz_offset, None, jit)[:2]
    return _day_offset_to_datetime64(t, noon*86400)

def sunrise_fraction(dt, latitude, longitude, tz_offset=None, polar='raise', jit=None):
    """Sunrise as a fraction of the local day, see sun_events"""
    return _events(dt, latitude, longitude, tz_offset, polar, jit)[2]

def sunrise_seconds(dt, latitude, longitude, tz_offset=None, polar='raise', jit=None):
    """Sunrise in seconds since local midnight, see sun_events"""
    return sunrise_fraction(dt, latitude, longitude, tz_offset, polar, jit)*86400

def sunrise_time(dt, latitude, longitude, tz_offset=None, polar='raise', jit=None):
    """Sunrise as a local numpy.datetime64, to the nearest second (NaT on polar days/nights with polar='nan')"""
    t, _, sunrise, _ = _events(dt, latitude, longitude, tz_offset, polar, jit)
    return _day_offset_to_datetime64(t, sunrise*86400)

def sunset_fraction(dt, latitude, longitude, tz_offset=None, polar='raise', jit=None):
    """Sunset as a fraction of the local day, see sun_events"""
    return _events(dt, latitude, longitude, tz_offset, polar, jit)[3]

def sunset_seconds(dt, latitude, longitude, tz_offset=None, polar='raise', jit=None):
    """Sunset in seconds since local midnight, see sun_events"""
    return sunset_fraction(dt, latitude, longitude, tz_offset, polar, jit)*86400

def sunset_time(dt, latitude, longitude, tz_offset=None, polar='raise', jit=None):
    """Sunset as a local numpy.datetime64, to the nearest second (NaT on polar days/nights with polar='nan')"""
    t, _, _, sunset = _events(dt, latitude, longitude, tz_offset, polar, jit)
    return _day_offset_to_datetime64(t, sunset*86400)

def refraction_correction(elevation, radians=False):
    """Approximate atmospheric refraction at the given geometric solar elevation

    Parameters
    ----------
    elevation : array_like of float
        geometric elevation angle, degrees (radians if radians=True)
    radians : bool, optional
        input and output in radians if True, degrees if False (default)

    Returns
    -------
    refraction : ndarray, to be added to the geometric elevation
    """
    e = np.asarray(elevation, dtype=np.float64)
    if radians:
        return np.deg2rad(_refraction_correction_vec(np.rad2deg(e)))[()]
    return _refraction_correction_vec(e)[()]

def solar_elevation_angle(dt, latitude, longitude, tz_offset=None, refraction=True, radians=False, jit=None):
    """Compute the solar elevation angle at the given local time and location

    Parameters
    ----------
    dt : array_like
        datetime.datetime, datetime.date (local midnight), numpy.datetime64, ISO8601 strings, or POSIX timestamps (float or int)
        The time of day is taken to the minute
    latitude, longitude : array_like of float
        decimal degrees, positive for north of the equator and east of Greenwich
    tz_offset : None or array_like of float, optional
        minutes to add to local time to reach UTC (UTC+7 is -420), see to_local_time
    refraction : bool, optional
        include the atmospheric refraction correction (default True)
    radians : bool, optional
        return results in radians if True, degrees if False (default)
    jit : bool, optional
        override module jit settings

    Returns
    -------
    elevation : ndarray, measured up from the horizon
    """
    t, tz = to_local_time(dt, tz_offset)
    lat, lon = _check_lat_lon(latitude, longitude)
    _check_approximation_range(t)
    e0, delta_e = _apply(jit, _solar_elevation_vec, _solar_elevation_vec_jit, t, lat, lon, tz)
    e = e0 + delta_e if refraction else e0
    if radians:
        e = np.deg2rad(e)
    return e

def _intermediate_values(dt, latitude, longitude, tz_offset=None):
    '''All of the intermediate quantities for a single date and location, in a dict'''
    t, tz = to_local_time(dt, tz_offset)
    lat, lon = _check_lat_lon(latitude, longitude)
    t, tz, lat, lon = float(t), float(tz), float(lat), float(lon)
    jd = _julian_date(t, tz)
    jc = _julian_century(jd)
    L0, M, e, epsilon = _sun_geometry(jc)
    C = _equation_of_center(jc, M)
    llambda = _apparent_longitude(jc, L0, C)
    noon, sunrise, sunset, cos_ha = _sun_events(t, lat, lon, tz)
    e0, delta_e = _solar_elevation(t, lat, lon, tz)
    return dict(
        local_time=t, tz_offset=tz, day_fraction=_day_fraction(t),
        julian_date=jd, julian_century=jc,
        mean_longitude=L0, mean_anomaly=M, eccentricity=e, obliquity_correction=epsilon,
        equation_of_center=C, true_longitude=L0 + C, apparent_longitude=llambda,
        declination=_declination(epsilon, llambda), equation_of_time=_equation_of_time(L0, M, e, epsilon),
        cos_hour_angle=cos_ha, solar_noon=noon, sunrise=sunrise, sunset=sunset,
        elevation_uncorrected=e0, atmos_refract=delta_e, elevation=e0 + delta_e,
    )

if __name__ == '__main__':
    sys.exit(main())
