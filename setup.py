# Copyright (C) 2021-2025, Mindee.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.

"""
Package installation setup
"""

import os
import re
from pathlib import Path

from setuptools import find_packages, setup

version = "0.1.0a0"
src_folder = 'matmorph'
package_index = 'python-matmorph'

cwd = Path(__file__).parent.absolute()

if os.getenv('BUILD_VERSION'):
    version = os.getenv('BUILD_VERSION')
print(f"Building wheel {package_index}-{version}")

with open(cwd.joinpath(src_folder, 'version.py'), 'w') as f:
    f.write(f"__version__ = '{version}'\n")

with open(cwd.joinpath('README.md'), 'r') as f:
    readme = f.read()

# Borrowed from https://github.com/huggingface/transformers/blob/master/setup.py
_deps = [
    "numpy>=1.16.0",
    "scipy>=1.4.0",
    "opencv-python>=3.4.5.20",
    # Testing
    "pytest>=5.3.2",
    "coverage>=4.5.4",
    # Quality
    "flake8>=3.9.0",
    "isort>=5.7.0",
    "mypy>=0.812",
]

deps = {b: a for a, b in (re.findall(r"^(([^!=<>]+)(?:[!=<>].*)?$)", x)[0] for x in _deps)}


def deps_list(*pkgs):
    return [deps[pkg] for pkg in pkgs]


install_requires = [
    deps["numpy"],
    deps["opencv-python"],
]

extras = {}

extras["testing"] = deps_list(
    "pytest",
    "coverage",
    "scipy",
)

extras["quality"] = deps_list(
    "flake8",
    "isort",
    "mypy"
)

extras["dev"] = (
    extras["testing"]
    + extras["quality"]
)

setup(
    # Metadata
    name=package_index,
    version=version,
    description='Fast dilation and erosion of 2D matrices by rectangles and octagons, using a pair of matrices.',
    long_description=readme,
    long_description_content_type="text/markdown",
    license='Apache',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: Apache Software License',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Topic :: Scientific/Engineering :: Image Processing',
    ],
    keywords=['morphology', 'dilation', 'erosion', 'image processing', 'numpy', 'opencv'],

    # Package info
    packages=find_packages(exclude=('tests', 'tests.*')),
    zip_safe=True,
    python_requires='>=3.10.0',
    include_package_data=True,
    install_requires=install_requires,
    extras_require=extras,
)
