from setuptools import find_packages, setup

setup(
    name='akclient',
    version='1.0',
    description='A client for the AK protocol, for scripted and interactive use.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Development Status :: 5 - Production/Stable',
        'Environment :: Console',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Testing',
        'Topic :: Utilities',
    ],

    python_requires='>=3.6',
    install_requires=[
        'appdirs',
    ],
    extras_require={
        'test': ['pytest'],
    },
    packages=find_packages(exclude=['tests']),
    entry_points = {
        'console_scripts': [
            'akclient = akclient.cli:main',
        ],
    }
)
