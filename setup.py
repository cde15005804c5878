#!/usr/bin/env python
"""
oltshell - Interactive CLI automation for multi-vendor OLTs

Drives GPON/EPON optical line terminals over an interactive SSH shell:
prompt-matching expect sessions, per-vendor capability matrices and a
driver registry for Huawei, V-SOL and generic CLI vendors.
"""

import os
from setuptools import setup, find_packages

# Read the README for long description
here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

# Version
VERSION = '0.1.0'

setup(
    name='oltshell',
    version=VERSION,
    description='Interactive SSH expect engine and drivers for multi-vendor OLTs',
    long_description=long_description,
    long_description_content_type='text/markdown',

    license='MIT',

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: System Administrators',
        'Intended Audience :: Telecommunications Industry',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: System :: Networking',
        'Topic :: System :: Systems Administration',
    ],

    keywords='network automation ssh olt gpon huawei vsol expect',

    packages=find_packages(exclude=['tests', 'tests.*']),

    python_requires='>=3.10',

    install_requires=[
        'click>=8.0',
        'paramiko>=3.0',
        'PyYAML>=6.0',
    ],

    extras_require={
        'dev': [
            'pytest>=7.0',
        ],
    },

    # Entry points for CLI commands
    entry_points={
        'console_scripts': [
            'oltshell=oltshell.cli.main:main',
        ],
    },
)
