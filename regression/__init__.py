"""
Polynomial linear and logistic regression trained by batch gradient descent.

Subpackages:
- preprocessing: polynomial feature mapping and z-score normalization
- models: LinearModel and LogisticModel (sigmoid or softmax link)
- evaluation: confusion matrix, precision/recall/F1, regression errors
- data: text file and MNIST backends, train/test splitting
- io: cost and penalty traces, model curve output
- experiments: single-fit and penalty-sweep runners
"""

__version__ = "0.1.0"
