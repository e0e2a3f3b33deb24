#!/usr/bin/env python

from setuptools import setup

setup(
    name='termtogif',
    version='0.1.0',
    license='BSD 3-clause license',
    description='Record terminal sessions and replay them as animated GIFs',
    long_description='A terminal recorder written in Python which replays '
                     'your command line sessions on a virtual terminal and '
                     'renders them as animated GIF images.',
    classifiers=[
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: MacOS',
        'Operating System :: POSIX :: BSD',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Multimedia :: Graphics',
        'Topic :: System :: Shells',
        'Topic :: Terminals'
    ],
    python_requires='>=3.8',
    packages=[
        'termtogif',
        'termtogif.tests'
    ],
    scripts=['scripts/termtogif'],
    include_package_data=True,
    package_data={
        'termtogif': ['data/*.json'],
    },
    install_requires=[
        'Pillow',
        'pyte',
    ],
    extras_require={
        'dev': [
            'coverage',
            'pylint',
            'twine',
            'wheel',
        ]
    }
)
