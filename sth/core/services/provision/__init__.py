"""
Provisioning engine — recipes in, installed binaries out.

Layers (each only imports from the layers above it):

    domain/         L1  pure logic: templates, semver, paths, targets,
                        default action synthesis
    resolver/       L2  version / checksum / recipe resolution
    detection/      L3  platform probes (read-only)
    execution/      L4  downloads, archives, shell, per-action executors
    orchestration/  L5  single-recipe and batch installs
    catalog/            recipe index generation and lookup
"""
