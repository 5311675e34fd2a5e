"""
Logging Configuration and Audit Trail Infrastructure.

This module provides structured logging for simulation runs. Every run
can produce an artifact that records which satellites were used, which
solver failures occurred and how accurate the resulting fixes were, so
that a surprising fix can be replayed and explained afterwards.

The geodesic module itself never logs; the scenario, Monte Carlo and
validation layers report through the facilities defined here.
"""

import hashlib
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from contextlib import contextmanager
import threading


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger configured for the trilateration simulator.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).
    level : int
        Logging level.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


@dataclass
class SolverFailure:
    """Record of a trilateration attempt that produced no position.

    Attributes
    ----------
    timestamp : datetime
        When the failure occurred.
    status : str
        Outcome tag, e.g. 'no_intersection' or 'degenerate_geometry'.
    message : str
        Human-readable reason reported by the solver.
    context : dict
        Satellite positions, ranges, sample index, etc.
    """
    timestamp: datetime
    status: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AccuracyCheck:
    """Record of a fix compared against its true target.

    Attributes
    ----------
    timestamp : datetime
        When the check was made.
    check_name : str
        What was compared (e.g. 'fix_error', 'range_residual').
    error_km : float
        The measured error in km.
    tolerance_km : float
        The acceptable error in km.
    passed : bool
        Whether the error is within tolerance.
    context : dict
        Additional context.
    """
    timestamp: datetime
    check_name: str
    error_km: float
    tolerance_km: float
    passed: bool
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunMetadata:
    """Metadata for a simulation run."""
    run_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    config_hash: str = ""
    input_metadata: Dict[str, Any] = field(default_factory=dict)
    output_metadata: Dict[str, Any] = field(default_factory=dict)
    solver_failures: List[SolverFailure] = field(default_factory=list)
    accuracy_checks: List[AccuracyCheck] = field(default_factory=list)

    def compute_config_hash(self, config: Dict[str, Any]) -> str:
        """Compute a deterministic hash of the configuration.

        Parameters
        ----------
        config : dict
            The configuration dictionary.

        Returns
        -------
        str
            First 16 hex digits of the SHA-256 of the sorted JSON form.
        """
        config_str = json.dumps(config, sort_keys=True, default=str)
        self.config_hash = hashlib.sha256(config_str.encode()).hexdigest()[:16]
        return self.config_hash


class AuditLogger:
    """Central logging facility for simulation audit trails.

    Thread Safety
    -------------
    Creation of the singleton is guarded by a lock. Records are appended
    to the run that is current when the call is made.

    Examples
    --------
    >>> audit = AuditLogger()
    >>> with audit.run_context("scenario_001") as run:
    ...     audit.log_solver_failure(
    ...         status="no_intersection",
    ...         message="spheres do not intersect",
    ...         context={"sample": 3}
    ...     )
    >>> summary = audit.get_run_summary("scenario_001")
    """

    _instance: Optional['AuditLogger'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'AuditLogger':
        """Singleton pattern for global audit logger."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._runs: Dict[str, RunMetadata] = {}
        self._current_run_id: Optional[str] = None
        self._logger = get_logger("audit")
        self._initialized = True

    @property
    def current_run(self) -> Optional[RunMetadata]:
        if self._current_run_id is None:
            return None
        return self._runs.get(self._current_run_id)

    @contextmanager
    def run_context(self, run_id: str, config: Optional[Dict[str, Any]] = None):
        """Context manager for a simulation run.

        Parameters
        ----------
        run_id : str
            Unique identifier for this run.
        config : dict, optional
            Configuration to compute hash from.

        Yields
        ------
        RunMetadata
            The metadata object for this run.
        """
        metadata = RunMetadata(
            run_id=run_id,
            start_time=datetime.now()
        )

        if config:
            metadata.compute_config_hash(config)

        self._runs[run_id] = metadata
        self._current_run_id = run_id

        self._logger.info(f"Starting run {run_id} with config hash {metadata.config_hash}")

        try:
            yield metadata
        finally:
            metadata.end_time = datetime.now()
            self._current_run_id = None
            self._logger.info(
                f"Completed run {run_id}. "
                f"Solver failures: {len(metadata.solver_failures)}, "
                f"Accuracy checks: {len(metadata.accuracy_checks)}"
            )

    def log_solver_failure(
        self,
        status: str,
        message: str,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log a trilateration attempt that produced no position.

        Parameters
        ----------
        status : str
            Outcome tag of the failed attempt.
        message : str
            Reason reported by the solver.
        context : dict, optional
            Additional context for the failure.
        """
        failure = SolverFailure(
            timestamp=datetime.now(),
            status=status,
            message=message,
            context=context or {}
        )

        run = self.current_run
        if run is not None:
            run.solver_failures.append(failure)

        self._logger.warning(f"SOLVER FAILURE | {status} | {message}")

    def log_accuracy_check(
        self,
        check_name: str,
        error_km: float,
        tolerance_km: float,
        context: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Log a comparison of a fix against the truth.

        Parameters
        ----------
        check_name : str
            What was compared.
        error_km : float
            The error in km.
        tolerance_km : float
            The acceptable error in km.
        context : dict, optional
            Additional context.

        Returns
        -------
        bool
            Whether the check passed.
        """
        passed = abs(error_km) <= tolerance_km

        check = AccuracyCheck(
            timestamp=datetime.now(),
            check_name=check_name,
            error_km=error_km,
            tolerance_km=tolerance_km,
            passed=passed,
            context=context or {}
        )

        run = self.current_run
        if run is not None:
            run.accuracy_checks.append(check)

        status = "PASS" if passed else "FAIL"
        log_msg = (
            f"ACCURACY CHECK | {check_name} | {status} | "
            f"error={error_km:.6f} km (tolerance={tolerance_km:.6f} km)"
        )

        if passed:
            self._logger.debug(log_msg)
        else:
            self._logger.warning(log_msg)
        return passed

    def get_run_summary(self, run_id: str) -> Dict[str, Any]:
        """Get a summary of a simulation run.

        Raises
        ------
        KeyError
            If no run with this ID was recorded.
        """
        if run_id not in self._runs:
            raise KeyError(f"No run found with ID {run_id}")

        metadata = self._runs[run_id]

        failure_counts: Dict[str, int] = {}
        for f in metadata.solver_failures:
            failure_counts[f.status] = failure_counts.get(f.status, 0) + 1

        passed = sum(1 for c in metadata.accuracy_checks if c.passed)

        return {
            "run_id": run_id,
            "config_hash": metadata.config_hash,
            "start_time": metadata.start_time.isoformat(),
            "end_time": metadata.end_time.isoformat() if metadata.end_time else None,
            "total_solver_failures": len(metadata.solver_failures),
            "failure_counts_by_status": failure_counts,
            "accuracy_checks_passed": passed,
            "accuracy_checks_failed": len(metadata.accuracy_checks) - passed,
        }

    def export_run_artifacts(self, run_id: str, output_path: Path) -> None:
        """Export all audit artifacts for a run to JSON.

        Parameters
        ----------
        run_id : str
            The run identifier.
        output_path : Path
            Path to write the JSON file.
        """
        if run_id not in self._runs:
            raise KeyError(f"No run found with ID {run_id}")

        metadata = self._runs[run_id]

        artifacts = {
            "run_id": metadata.run_id,
            "config_hash": metadata.config_hash,
            "start_time": metadata.start_time.isoformat(),
            "end_time": metadata.end_time.isoformat() if metadata.end_time else None,
            "input_metadata": metadata.input_metadata,
            "output_metadata": metadata.output_metadata,
            "solver_failures": [
                {
                    "timestamp": f.timestamp.isoformat(),
                    "status": f.status,
                    "message": f.message,
                    "context": f.context
                }
                for f in metadata.solver_failures
            ],
            "accuracy_checks": [
                {
                    "timestamp": c.timestamp.isoformat(),
                    "check_name": c.check_name,
                    "error_km": c.error_km,
                    "tolerance_km": c.tolerance_km,
                    "passed": c.passed,
                    "context": c.context
                }
                for c in metadata.accuracy_checks
            ]
        }

        with open(output_path, 'w') as f:
            json.dump(artifacts, f, indent=2, default=str)

        self._logger.info(f"Exported audit artifacts to {output_path}")
