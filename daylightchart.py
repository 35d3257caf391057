"""
Plot sunrise, solar noon and sunset over a year.

################################################################################

Copyright 2023, Samuel B Powell

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this
list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice,
this list of conditions and the following disclaimer in the documentation
and/or other materials provided with the distribution.

3. Neither the name of the copyright holder nor the names of its contributors
may be used to endorse or promote products derived from this software without
specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
POSSIBILITY OF SUCH DAMAGE.
"""

import argparse
import numpy as np
import datetime
import matplotlib.pyplot as plt

import suntimes

def _parse_args(args, **kw):
    p = argparse.ArgumentParser(prog='daylightchart',description='Plot sunrise, solar noon and sunset over a year')
    p.add_argument('-lat', '--latitude',type=float,default=50)
    p.add_argument('-lon','--longitude',type=float,default=0)
    p.add_argument('-y','--year',type=int,default=datetime.datetime.now().year)
    p.add_argument('-z','--timezone',type=float,default=None,help='timezone hour offset from UTC (+7 for UTC+7). Defaults to round(longitude*12/180)')
    p.add_argument('-o','--output',help='Plot file',default='daylight.png')
    args = p.parse_args(args, argparse.Namespace(**kw))
    if args.timezone is None:
        args.timezone = round(args.longitude*12/180)
    return args

def daylight_table(year, latitude, longitude, tz_offset):
    '''Sun times for every day of the year

    Parameters
    ----------
    year : int
    latitude, longitude : float
        decimal degrees, positive for north of the equator and east of Greenwich
    tz_offset : float
        minutes to add to local time to reach UTC (UTC+7 is -420)

    Returns
    -------
    days : ndarray of datetime64[D]
    noon, sunrise, sunset : ndarray
        hours since local midnight, sunrise & sunset are nan on polar days and nights
    daylight : ndarray
        hours between sunrise and sunset, 24 on polar days and 0 on polar nights
    '''
    #this will automatically deal with e.g. leap years
    days = np.arange(np.datetime64(f'{year:04}-01-01'), np.datetime64(f'{year+1:04}-01-01'))
    noon, sunrise, sunset = suntimes.sun_events(days, latitude, longitude, tz_offset, polar='nan')
    daylight = suntimes.daylight_seconds(days, latitude, tz_offset)/3600
    return days, noon*24, sunrise*24, sunset*24, daylight

def find_solstices(daylight_hours):
    '''indices of the shortest and the longest day'''
    winter_solstice = np.argmin(daylight_hours)
    summer_solstice = np.argmax(daylight_hours)
    return winter_solstice, summer_solstice

def find_equinoxes(daylight_hours, winter_solstice, summer_solstice):
    '''indices of the spring and fall days closest to 12 hours of daylight'''
    hours_err = np.abs(daylight_hours - 12) #equinoxes are (close to) 12 hour days

    s1, s2 = sorted((winter_solstice,summer_solstice))
    eq1 = s1 + np.argmin(hours_err[s1:s2]) #between solstices s1 & s2
    eq2 = np.argmin(hours_err[:s1]) if s1 > 0 else s2
    eq2_b = s2 + np.argmin(hours_err[s2:])
    if hours_err[eq2_b] < hours_err[eq2]:
        eq2 = eq2_b
    if s1 == winter_solstice:
        spring_equinox, fall_equinox = eq1, eq2
    else:
        spring_equinox, fall_equinox = eq2, eq1
    return spring_equinox, fall_equinox

def format_day(day, fmt='%b %d'):
    return day.astype(datetime.datetime).strftime(fmt)

def main(args=None, **kw):
    args = _parse_args(args, **kw)

    tz_offset = -args.timezone*60
    days, noon, sunrise, sunset, daylight = daylight_table(args.year, args.latitude, args.longitude, tz_offset)
    x = np.arange(len(days))

    winter_i, summer_i = find_solstices(daylight)
    spring_i, fall_i = find_equinoxes(daylight, winter_i, summer_i)

    fig = plt.figure(dpi=100)
    ax = fig.add_subplot()
    ax.set_xlim(0, len(days)-1)
    ax.set_ylim(0, 24)
    ax.set_yticks(range(0, 25, 3))
    ax.set_ylabel(f'Local time (UTC{args.timezone:+g}), hours')
    ax.set_title(f'Lat, Lon = {args.latitude} deg, {args.longitude} deg, {args.year}')

    #shade daylight: between sunrise & sunset, or the whole day on polar days
    polar_day = daylight >= 24
    ax.fill_between(x, np.where(polar_day, 0, sunrise), np.where(polar_day, 24, sunset), color='gold', alpha=0.5, linewidth=0)
    ax.plot(x, sunrise, 'k-', label='sunrise')
    ax.plot(x, sunset, 'k--', label='sunset')
    ax.plot(x, noon, 'k:', label='solar noon')

    #label the first of each month
    months = days.astype('datetime64[M]')
    firsts = np.flatnonzero(days == months.astype('datetime64[D]'))
    ax.set_xticks(firsts)
    ax.set_xticklabels([format_day(days[i], '%b') for i in firsts])

    #mark the solstices & equinoxes
    for i, name in ((winter_i,'shortest day'), (summer_i,'longest day'), (spring_i,'spring equinox'), (fall_i,'fall equinox')):
        ax.axvline(i, color='gray', linewidth=0.5)
        ax.annotate(f'{name}\n{format_day(days[i])}\n{daylight[i]:0.1f} h', (i, 0.5), horizontalalignment='center', fontsize='small', annotation_clip=False)

    ax.legend(loc='upper right', fontsize='small')
    fig.savefig(args.output,dpi=300)
    plt.close(fig)
    return 0

if __name__ == '__main__':
    main()
