from __future__ import annotations

# <sys/mount.h>
MNT_RDONLY = 0x00000001
MNT_SYNCHRONOUS = 0x00000002
MNT_NOEXEC = 0x00000004
MNT_NOSUID = 0x00000008
MNT_NFS4ACLS = 0x00000010
MNT_UNION = 0x00000020
MNT_ASYNC = 0x00000040
MNT_SUIDDIR = 0x00100000
MNT_SOFTDEP = 0x00200000
MNT_NOSYMFOLLOW = 0x00400000
MNT_GJOURNAL = 0x02000000
MNT_MULTILABEL = 0x04000000
MNT_ACLS = 0x08000000
MNT_NOATIME = 0x10000000
MNT_NOCLUSTERR = 0x40000000
MNT_NOCLUSTERW = 0x80000000

# getfsstat(2) modes
MNT_WAIT = 1
MNT_NOWAIT = 2

# Output order follows this table, not bit order. gjounalc, noattime and
# nocluster are the historical tokens; FREEBSD_MOUNT_OPTIONS_KERNEL spells
# them the way mount(8) does.
FREEBSD_MOUNT_OPTIONS: tuple[tuple[int, str], ...] = (
    (MNT_SYNCHRONOUS, "sync"),
    (MNT_NOEXEC, "noexec"),
    (MNT_NOSUID, "nosuid"),
    (MNT_UNION, "union"),
    (MNT_ASYNC, "async"),
    (MNT_SUIDDIR, "suiddir"),
    (MNT_SOFTDEP, "softdep"),
    (MNT_NOSYMFOLLOW, "nosymfollow"),
    (MNT_GJOURNAL, "gjounalc"),
    (MNT_MULTILABEL, "multilabel"),
    (MNT_ACLS, "acls"),
    (MNT_NOATIME, "noattime"),
    (MNT_NOCLUSTERR, "nocluster"),
    (MNT_NOCLUSTERW, "noclusterw"),
    (MNT_NFS4ACLS, "nfs4acls"),
)

_KERNEL_SPELLINGS = {
    MNT_GJOURNAL: "gjournal",
    MNT_NOATIME: "noatime",
    MNT_NOCLUSTERR: "noclusterr",
}

FREEBSD_MOUNT_OPTIONS_KERNEL: tuple[tuple[int, str], ...] = tuple(
    (mask, _KERNEL_SPELLINGS.get(mask, token)) for mask, token in FREEBSD_MOUNT_OPTIONS
)


def option_table(kernel_names: bool = False) -> tuple[tuple[int, str], ...]:
    return FREEBSD_MOUNT_OPTIONS_KERNEL if kernel_names else FREEBSD_MOUNT_OPTIONS


def flags_to_options(
    flags: int,
    table: tuple[tuple[int, str], ...] = FREEBSD_MOUNT_OPTIONS,
    readonly: int = MNT_RDONLY,
) -> str:
    opts = ["ro" if flags & readonly else "rw"]
    for mask, token in table:
        if flags & mask:
            opts.append(token)
    return ",".join(opts)
