from setuptools import setup, find_packages

setup(
    name='js2rho',
    version='0.1.0',
    py_modules=['js2rho', 'compiler'],
    packages=find_packages(include=['rhocore', 'rhocore.*']),
    python_requires='>=3.9',
    install_requires=[
        'lark',
        'pydantic>=2',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'js2rho = js2rho:main',
        ],
    },
)
