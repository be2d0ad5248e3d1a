from setuptools import setup, find_packages

setup(
    name='photonctl',
    version='0.1.0',
    packages=find_packages(),
    include_package_data=True,
    install_requires=[
        'typer[all]',
        'requests',
        'python-dotenv',
        'pyyaml',
        'jsonschema',
        'rich'
    ],
    extras_require={
        'test': [
            'pytest'
        ]
    },
    entry_points={
        'console_scripts': [
            'photonctl=photonctl.cli:run'
        ]
    },
    author='Your Name',
    description='Cluster lifecycle CLI for Photon Controller with reliable long-running task tracking',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
