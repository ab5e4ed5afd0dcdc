import os.path

from setuptools import find_packages, setup

with open(os.path.join(os.path.dirname(__file__), 'README.md')) as f:
    LONG_DESCRIPTION = f.read()
    DESCRIPTION = LONG_DESCRIPTION.splitlines()[0].lstrip('#').strip()

setup(
    name='statemgr',
    version='1.0.0',

    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    keywords=['state-manager', 'resources', 'reconciliation', 'client', 'asyncio'],
    license='MIT',
    classifiers = [
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Programming Language :: Python :: 3 :: Only',
        'Programming Language :: Python :: Implementation :: CPython',
        'Topic :: Software Development :: Libraries',
    ],

    zip_safe=True,
    packages=find_packages(include=['statemgr', 'statemgr.*']),
    include_package_data=True,
    entry_points={
        'console_scripts': [
            'statemgr = statemgr.cli:main',
        ],
    },

    python_requires='>=3.9',
    install_requires=[
        'typing_extensions',            # 0.20 MB
        'python-json-logger>=3.1',      # 0.05 MB
        'iso8601',                      # 0.07 MB
        'click',                        # 0.60 MB
        'aiohttp>=3.9.0',               # 7.80 MB
        'pyyaml',                       # 0.90 MB
    ],
    extras_require={
        'dev': [
            'pytest',
            'pytest-asyncio>=0.24',
            'pytest-mock',
        ],
    },
    package_data={"statemgr": ["py.typed"]},
)
