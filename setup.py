from setuptools import setup, find_packages

setup(
    name             = 'sentiscope',
    version          = '1.0.0',
    description      = 'Sentiscope — document sentiment analysis with a queryable history and bulk export',
    packages         = find_packages(exclude=['tests*']),
    install_requires = open('requirements.txt').read().splitlines(),
    extras_require   = {
        'test': [
            'pytest>=7.0',
            'httpx>=0.24',
        ],
    },
    entry_points     = {
        'console_scripts': [
            'sentiscope = sentiscope.cli:main',
        ],
    },
    python_requires  = '>=3.10',
    classifiers      = [
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
)
