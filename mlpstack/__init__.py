# mlpstack/__init__.py

"""
mlpstack - regularized multi-layer perceptrons and network stacks on NumPy.

The package trains small fully connected networks with pluggable activation functions,
L1 weight shrinkage and norm-constraint clipping, and combines independently trained
networks into stacks. Around the engine it provides the data side (time-series patterns,
feature filters, sample datasets) and the interpretation side (binary, categorical and
regression output details).

Modules:
--------
- common    : Logging and the error taxonomy
- data      : Time-series patterns, feature filters and sample datasets
- maths     : Running sample statistics
- ml        : Activations, regularization, networks, trainer, builder, stacks, output details

Examples:
---------
>>> from mlpstack.data import SampleDataset
>>> from mlpstack.ml import NetworkModelConfig, HiddenLayerConfig, NetworkModelBuilder, TaskType
>>> cfg     = NetworkModelConfig(epochs=100, hidden_layers=(HiddenLayerConfig(8, 'tanh'),))
>>> builder = NetworkModelBuilder(cfg, dataset.n_inputs, dataset.n_outputs, TaskType.BINARY)
>>> model   = builder.build(dataset)

File    : mlpstack/__init__.py
Version : 0.1.0
License : MIT
"""

import importlib

# Package metadata
__version__         = "0.1.0"
__license__         = "MIT"

MODULE_DESCRIPTION  = "Regularized MLP engine, network stacks, time-series patterns and output interpretation."

# List of available modules (not imported by default)
__all__             = ["common", "data", "maths", "ml"]

def get_module_description(module_name):
    """
    Get the description of a specific module in the mlpstack package.

    Parameters
    ----------
    module_name : str
        The name of the module.

    Returns
    -------
    str
        The description of the module.
    """
    descriptions = {
        "common"    : "Logging (flog) and the error taxonomy shared by every module.",
        "data"      : "Time-series patterns, feature filters and (input, output) sample datasets.",
        "maths"     : "Running sample statistics used by filters and error statistics.",
        "ml"        : "Activations, regularization, network model, trainer, builder, stacks and output details."
    }
    return descriptions.get(module_name, "Module not found.")

def list_available_modules():
    """
    List all available modules in the mlpstack package.

    Returns
    -------
    list
        List of available module names.
    """
    return __all__

# Lazy import subpackages on attribute access (PEP 562)
def __getattr__(name):  # pragma: no cover - simple indirection
    if name in __all__:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

def __dir__():  # pragma: no cover
    return sorted(list(globals().keys()) + __all__)

# ---------------------------------------------------------------------
#! EOF
