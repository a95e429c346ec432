"""Install the sessionauth package."""

from setuptools import setup, find_packages

setup(
    name='sessionauth',
    version='0.1.0',
    description='Account registration, password login and per-device sessions',
    packages=find_packages(include=['sessionauth', 'sessionauth.*'],
                           exclude=['*test*']),
    python_requires='>=3.8',
    install_requires=[
        "sqlalchemy>=1.4",
        "pytz",
        "python-dateutil",
        "python-json-logger",
    ],
    extras_require={
        'test': [
            "pytest",
            "hypothesis",
            "mimesis",
        ]
    },
    zip_safe=False
)
