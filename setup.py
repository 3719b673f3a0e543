#/usr/bin/env python

""" Setup aliceanalysis

Originally derived from the ``setup.py`` in ``aliBuild``, with options derived
from `here < https://python-packaging.readthedocs.io/en/latest/index.html>`__.

.. codeauthor:: Raymond Ehlers <raymond.ehlers@cern.ch>, Yale University
"""

# Always prefer setuptools over distutils
from setuptools import setup, find_packages
# To use a consistent encoding
from codecs import open
import os

def getVersion():
    versionModule = {}
    with open(os.path.join("aliceanalysis", "version.py")) as f:
        exec(f.read(), versionModule)
    return versionModule["__version__"]

# Get the long description from the README file
here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name="aliceanalysis",
    version=getVersion(),

    description="ALICE analysis tasks: flow correlations, heavy-flavour jet tagging and TRD tracklet QA",
    long_description=long_description,
    long_description_content_type="text/markdown",

    author="Raymond Ehlers",
    author_email="raymond.ehlers@cern.ch",

    license="BSD 3-Clause",

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        # How mature is this project? Common values are
        #   3 - Alpha
        #   4 - Beta
        #   5 - Production/Stable
        'Development Status :: 3 - Alpha',

        # Indicate who your project is intended for
        'Intended Audience :: Science/Research',

        # Specify the Python versions you support here.
        'Programming Language :: Python :: 3',
    ],

    # What does your project relate to?
    keywords='HEP ALICE',

    packages=find_packages(exclude=(".git", "tests")),
    python_requires=">=3.9",

    # Rename scripts to the desired executable names
    # See: https://stackoverflow.com/a/8506532
    entry_points = {
        "console_scripts": [
            # Runs the configured tasks over the configured event files.
            "aliceanalysisRun = aliceanalysis.framework.run:run",
        ],
    },

    # Required packages.
    # Optional dependencies are defined below
    install_requires = [
        "aenum",
        "ruamel.yaml",
        "numpy",
    ],

    # Include additional files
    include_package_data=True,
    package_data={
        "aliceanalysis": ["*/*.yaml"],
    },

    extras_require = {
        "tests": [
            "pytest",
            "pytest-cov",
            "pytest-mock",
        ],
        "dev": [
            "flake8",
        ]
    }
)
