"""
Machine learning side of the engine: feed-forward networks, their training and ensembles.

**Building blocks:**
- Activation functions (registry of frozen records) and weight initializers
- Losses bound to the output layer, optimizers (SGD, Adam) and gradient clipping
- Layer regularization: L1 shrinkage, L2 decay, the norm constraint and dropout

**Models:**
- NetworkModel (multi-layer perceptron) and its trainer
- NetworkModelBuilder (attempts, early stopping, best model)
- NetworkStack (ensemble of independently trained networks)

**Interpretation:**
- Task error statistics and output details (binary, categorical, regression)

Example:
    >>> from mlpstack.ml import NetworkModelConfig, HiddenLayerConfig, NetworkModelBuilder
    >>> cfg     = NetworkModelConfig(epochs=300, hidden_layers=(HiddenLayerConfig(8, 'relu'),))
    >>> model   = NetworkModelBuilder(cfg, 2, 1, 'binary').build((x, y), key=0)
    >>> model.predict(x[0])
"""

import  importlib
from    typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .activations       import ActivationFunction, ActivationKind, get_activation, available_activations
    from .config            import (TaskType, HiddenLayerConfig, OutputOptionsConfig,
                                    NetworkModelConfig, NetworkStackConfig)
    from .regularization    import (RegL1Config, RegL2Config, NormConsConfig, DropoutConfig, DropoutMode,
                                    apply_l1, apply_l2, apply_norm_constraint, dropout_gates)
    from .optimizers        import SGDConfig, AdamConfig, SGD, Adam, create_optimizer, clip_gradients
    from .losses            import SquaredErrorLoss, SigmoidCrossEntropyLoss, SoftmaxCrossEntropyLoss
    from .network           import NetworkModel, NetworkState, ForwardCache
    from .trainer           import NetworkTrainer
    from .early_stopping    import EarlyStopping
    from .evaluation        import TaskErrorStats
    from .builder           import NetworkModelBuilder, BuildProgress
    from .stack             import NetworkStack, MemberReport
    from .output_detail     import (TaskOutputDetailBase, BinaryOutputDetail, CategoricalOutputDetail,
                                    RegressionOutputDetail, create_output_detail)

# Lazy loading registry, the submodules import the data side and vice versa
_LAZY_IMPORTS = {
    # activations
    'ActivationFunction'        : ('.activations', 'ActivationFunction'),
    'ActivationKind'            : ('.activations', 'ActivationKind'),
    'get_activation'            : ('.activations', 'get_activation'),
    'available_activations'     : ('.activations', 'available_activations'),
    # configuration
    'TaskType'                  : ('.config', 'TaskType'),
    'HiddenLayerConfig'         : ('.config', 'HiddenLayerConfig'),
    'OutputOptionsConfig'       : ('.config', 'OutputOptionsConfig'),
    'NetworkModelConfig'        : ('.config', 'NetworkModelConfig'),
    'NetworkStackConfig'        : ('.config', 'NetworkStackConfig'),
    # regularization
    'RegL1Config'               : ('.regularization', 'RegL1Config'),
    'RegL2Config'               : ('.regularization', 'RegL2Config'),
    'NormConsConfig'            : ('.regularization', 'NormConsConfig'),
    'DropoutConfig'             : ('.regularization', 'DropoutConfig'),
    'DropoutMode'               : ('.regularization', 'DropoutMode'),
    'apply_l1'                  : ('.regularization', 'apply_l1'),
    'apply_l2'                  : ('.regularization', 'apply_l2'),
    'apply_norm_constraint'     : ('.regularization', 'apply_norm_constraint'),
    'dropout_gates'             : ('.regularization', 'dropout_gates'),
    # optimization
    'SGDConfig'                 : ('.optimizers', 'SGDConfig'),
    'AdamConfig'                : ('.optimizers', 'AdamConfig'),
    'SGD'                       : ('.optimizers', 'SGD'),
    'Adam'                      : ('.optimizers', 'Adam'),
    'create_optimizer'          : ('.optimizers', 'create_optimizer'),
    'clip_gradients'            : ('.optimizers', 'clip_gradients'),
    'SquaredErrorLoss'          : ('.losses', 'SquaredErrorLoss'),
    'SigmoidCrossEntropyLoss'   : ('.losses', 'SigmoidCrossEntropyLoss'),
    'SoftmaxCrossEntropyLoss'   : ('.losses', 'SoftmaxCrossEntropyLoss'),
    # models
    'NetworkModel'              : ('.network', 'NetworkModel'),
    'NetworkState'              : ('.network', 'NetworkState'),
    'ForwardCache'              : ('.network', 'ForwardCache'),
    'NetworkTrainer'            : ('.trainer', 'NetworkTrainer'),
    'EarlyStopping'             : ('.early_stopping', 'EarlyStopping'),
    'NetworkModelBuilder'       : ('.builder', 'NetworkModelBuilder'),
    'BuildProgress'             : ('.builder', 'BuildProgress'),
    'NetworkStack'              : ('.stack', 'NetworkStack'),
    'MemberReport'              : ('.stack', 'MemberReport'),
    # interpretation
    'TaskErrorStats'            : ('.evaluation', 'TaskErrorStats'),
    'TaskOutputDetailBase'      : ('.output_detail', 'TaskOutputDetailBase'),
    'BinaryOutputDetail'        : ('.output_detail', 'BinaryOutputDetail'),
    'CategoricalOutputDetail'   : ('.output_detail', 'CategoricalOutputDetail'),
    'RegressionOutputDetail'    : ('.output_detail', 'RegressionOutputDetail'),
    'create_output_detail'      : ('.output_detail', 'create_output_detail'),
}

_LOADED = {}

def __getattr__(name: str):
    """Lazy import handler - loads modules only when accessed."""
    if name in _LAZY_IMPORTS:
        if name not in _LOADED:
            module_path, attr_name  = _LAZY_IMPORTS[name]
            module                  = importlib.import_module(module_path, package=__name__)
            _LOADED[name]           = getattr(module, attr_name)
        return _LOADED[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__():
    return list(_LAZY_IMPORTS.keys())

__all__ = list(_LAZY_IMPORTS.keys())

####################################################################################################
#! EOF
####################################################################################################
