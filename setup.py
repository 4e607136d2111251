#!/usr/bin/env python3
"""
Setup script for Rendition - static site renderer.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='rendition',
    version='1.0.0',
    description='Renders a static website (with optional AMP pages) from a SQLite content database and Jinja2 themes',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(include=['rendition_pkg', 'rendition_pkg.*']),
    package_data={
        'rendition_pkg': [
            'defaults/*',
            'themes/default/*',
            'themes/default/assets/css/*',
        ],
    },
    include_package_data=True,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Site Management',
        'Topic :: Software Development :: Code Generators',
        'Topic :: Text Processing :: Markup :: HTML',
    ],
    python_requires='>=3.9',
    install_requires=[
        'Jinja2>=3.0',
        'PyYAML>=6.0',
        'csscompressor>=0.9.5',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'rendition=rendition_pkg.cli:main',
        ],
    },
    keywords='static site generator, amp, sqlite, jinja2, blog, website',
)
