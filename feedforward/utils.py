"""
Utility Functions for the Feedforward Library
=============================================

Helper functions for:
- Weight initialization
- Reproducibility
- Metrics (accuracy, ROC area under curve, confusion matrix)

Metric helpers take a list of predictions, each a pair
(estimate, expected) of flat sequences or column vectors.
"""

import numpy as np


def random_weights(m, n, zero_bias=True, low=-0.5, high=0.5):
    """
    Random weight matrix drawn uniformly from [low, high].

    Args:
        m: Number of rows (neurons)
        n: Number of columns (inputs + 1 bias column)
        zero_bias: Set column 0 (bias weights) to 0

    Returns:
        ndarray of shape (m, n)
    """
    weights = np.random.uniform(low, high, size=(m, n))
    if zero_bias:
        weights[:, 0] = 0.0
    return weights


def set_random_seed(seed):
    """Set random seed for reproducibility."""
    np.random.seed(seed)
    print(f"Random seed set to {seed}")


def _flat(values):
    if hasattr(values, 'values'):
        values = values.values
    return np.asarray(values, dtype=np.float64).reshape(-1)


def is_correct_category(estimate, expected):
    """True when the largest estimate sits at the position of the one-hot label."""
    return int(np.argmax(_flat(estimate))) == int(np.argmax(_flat(expected)))


def binary_classification_accuracy(points, cutoff=0.5):
    """
    Accuracy of single-output predictions thresholded at `cutoff`.

    Args:
        points: List of (estimate, expected) pairs
        cutoff: Estimates strictly above the cutoff count as class 1

    Returns:
        Accuracy as float
    """
    correct = 0
    for estimate, expected in points:
        predicted = 1 if _flat(estimate)[0] > cutoff else 0
        if predicted == _flat(expected)[0]:
            correct += 1
    return correct / len(points)


def classification_accuracy(points):
    """Accuracy of one-hot predictions (arg-max match)."""
    correct = sum(1 for estimate, expected in points if is_correct_category(estimate, expected))
    return correct / len(points)


def area_under_curve(points, steps=100):
    """
    Area under the ROC curve of single-output predictions.

    The cutoff sweeps [0, 1] in `steps` steps. Cutoffs that produce an
    already-seen false positive count are skipped, the remaining
    (fpr, tpr) points are sorted by fpr and integrated with the trapezoid rule.

    Returns:
        Area as float
    """
    scores = np.array([_flat(estimate)[0] for estimate, _ in points])
    labels = np.array([_flat(expected)[0] for _, expected in points])

    positives = np.sum(labels == 1)
    negatives = len(labels) - positives

    curve = []
    seen = set()
    for i in range(steps + 1):
        cutoff = i / steps
        predicted = scores > cutoff
        false_positives = int(np.sum(predicted & (labels != 1)))
        true_positives = int(np.sum(predicted & (labels == 1)))

        if false_positives in seen:
            continue
        seen.add(false_positives)
        curve.append((false_positives / negatives, true_positives / positives))

    curve.sort(key=lambda point: point[0])

    area = 0.0
    for (fpr_a, tpr_a), (fpr_b, tpr_b) in zip(curve, curve[1:]):
        area += (fpr_b - fpr_a) * (tpr_a + tpr_b) / 2
    return area


def confusion_matrix(points, num_classes=None):
    """
    Compute confusion matrix of one-hot predictions.

    Args:
        points: List of (estimate, expected) pairs
        num_classes: Number of classes (inferred from the vectors if None)

    Returns:
        Confusion matrix, shape (num_classes, num_classes), rows are true classes
    """
    y_true = [int(np.argmax(_flat(expected))) for _, expected in points]
    y_pred = [int(np.argmax(_flat(estimate))) for estimate, _ in points]

    if num_classes is None:
        num_classes = len(_flat(points[0][1]))

    cm = np.zeros((num_classes, num_classes), dtype=int)
    for t, p in zip(y_true, y_pred):
        cm[t, p] += 1

    return cm
