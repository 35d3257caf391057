from setuptools import setup

setup(
    name='sun-times',
    version='1.0.0',
    description='Solar noon, sunrise, sunset and solar elevation from the NOAA solar calculator equations',
    py_modules=['suntimes', 'daylightchart'],
    install_requires=['numpy >= 1.19.4'],
    extras_require={
        'jit': ['numba', 'scipy'],
        'chart': ['matplotlib'],
        'test': ['pytest', 'matplotlib'],
    },
    entry_points={
        'console_scripts': [
            'suntimes=suntimes:main',
            'daylightchart=daylightchart:main',
        ],
    },
)
