from setuptools import find_packages
from setuptools import setup

PROJECT = 'ocpwait'
exec(open(f'{PROJECT}/version.py').read())

try:
    long_description = open('README.md', 'rt').read()
except IOError:
    long_description = ''

setup(
    name=PROJECT,
    version=__version__,  # noqa

    description='Wait for OpenShift cluster resources to converge',
    long_description=long_description,
    long_description_content_type='text/markdown',

    classifiers=[
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'Environment :: Console',
    ],

    platforms=['Any'],

    scripts=[],

    provides=[],
    install_requires=[
        'cliff',
        'kubernetes',
        'loguru',
        'PyYAML',
        'tabulate',
        'urllib3',
    ],
    extras_require={
        'test': ['pytest'],
    },

    namespace_packages=[],
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,

    entry_points={
        'console_scripts': [
            'ocpwait = ocpwait.main:main'
        ],
        'ocpwait.commands': [
            'get conditions = ocpwait.commands.get:Conditions',
            'get version = ocpwait.commands.get:Version',
            'wait condition = ocpwait.commands.wait:Condition',
            'wait mcp = ocpwait.commands.wait:MachineConfigPool',
            'wait network = ocpwait.commands.wait:Network',
        ]
    },

    zip_safe=False,
)
