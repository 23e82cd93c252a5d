"""A setuptools based setup module."""

from os import path

from setuptools import setup, find_namespace_packages

HERE = path.abspath(path.dirname(__file__))
with open(path.join(HERE, 'README.md'), encoding='utf-8') as file:
    LONG_DESCRIPTION = file.read()

setup(
    name='lanesim',
    version='0.0.1',
    description='Lane based traffic simulation engine.',
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    classifiers=[  # https://pypi.org/classifiers/
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Education',
        'Intended Audience :: Science/Research',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Topic :: Scientific/Engineering',
        'Topic :: Games/Entertainment :: Simulation'
    ],
    keywords='traffic simulation intelligent-driver-model lane-change',
    packages=find_namespace_packages(include=['lanesim', 'lanesim.*']),
    python_requires='>=3.9, <4',
    install_requires=[
        'bezier>=2021.2.12',
        'dataslots>=1.0.2,<1.2',
        'numpy>=1.20.1'
    ],
    extras_require={
        'dev': [
            'flake8',
            'ipython',
            'isort',
            'pycodestyle',
            'pydocstyle',
            'pylint',
            'radon'
        ],
        'test': [
            'pytest'
        ]
    },
    entry_points={
        'console_scripts': [
            'lanesim = lanesim:main'
        ]
    }
)
