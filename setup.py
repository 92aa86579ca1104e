import os
import re

from setuptools import setup, find_packages

with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'splunksecrets', '__init__.py')) as f:
    __version__ = re.search(r"__version__ = '([^']+)'", f.read()).group(1)

install_requires = [
    'requests>=2.31.0',
    'cryptography>=41.0.0',
    'pycryptodomex>=3.20.0',
    'PyYAML>=6.0',
    'base58>=2.1.0',
]

if __name__ == '__main__':
    setup(
        name='splunk-secrets-engine',
        version=__version__,
        description='Dynamic Splunk credentials: per-consumer accounts with leases and admin password rotation',
        author='Keeper Security Inc.',
        author_email='ops@keepersecurity.com',
        python_requires='>=3.8',
        packages=find_packages(include=['splunksecrets', 'splunksecrets.*']),
        install_requires=install_requires,
        extras_require={
            'test': ['pytest'],
        },
        classifiers=[
            'Programming Language :: Python :: 3',
            'Operating System :: OS Independent',
        ],
    )
