"""Per-activity callers: turn raw records into rendered metric fields."""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any

from pysadf.models import CpuSnapshot
from pysadf.normalize import normalize
from pysadf.rates import s_value, sp_value
from pysadf.render import (
    DNOVAL,
    NOVAL,
    Dialect,
    FieldRenderer,
    IntArgs,
    Layout,
    RenderFlags,
    TemplateArgs,
    TextArgs,
)

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]
Records = Sequence[Record]


class CpuMode(Enum):
    """Which set of CPU utilization fields to display."""

    DEFAULT = "default"
    ALL = "all"


@dataclass(slots=True)
class ActivityContext:
    """Everything an activity caller needs for one report pass."""

    renderer: FieldRenderer
    prefix: str
    itv: int  # Interval of one processor, in ticks
    g_itv: int  # Interval summed over all processors, in ticks
    hz: int = 100
    page_size: int = 4096
    cpu_mode: CpuMode = CpuMode.DEFAULT
    cpus: frozenset[int] | None = None  # Selected CPU indices, 0 is "all"
    irqs: frozenset[int] | None = None  # Selected interrupt indices, 0 is "sum"
    pretty: bool = False

    @property
    def line_end(self) -> RenderFlags:
        """Flags for the last field of a record."""
        if self.renderer.layout is Layout.HORIZONTAL:
            return RenderFlags.NONE
        return RenderFlags.NEWLINE

    def emit(
        self,
        flags: RenderFlags,
        tabular: str | None,
        delimited: str | None,
        args: TemplateArgs | None = None,
        int_value: int = NOVAL,
        float_value: float = DNOVAL,
    ) -> None:
        """Render one field with this pass's prefix."""
        self.renderer.render(self.prefix, flags, tabular, delimited, args, int_value, float_value)

    def rate(self, previous: float, current: float) -> float:
        """Per-second rate over the pass interval."""
        return s_value(previous, current, self.itv, self.hz)

    def kb_to_pages(self, kb: int) -> float:
        """Convert kilobytes to memory pages."""
        return float(kb // max(self.page_size // 1024, 1))


@dataclass(slots=True, frozen=True)
class Activity:
    """A renderable activity and the sample record it reads."""

    name: str
    record: str
    render: Callable[[ActivityContext, Any, Any], None]


def _selected(selection: frozenset[int] | None, index: int) -> bool:
    """Check if an entity index is in the selection, or nothing is selected."""
    return selection is None or index in selection


def _last(flags: RenderFlags, index: int, count: int) -> RenderFlags:
    """Give the line-ending flags only to the last field of a record."""
    return flags if index == count - 1 else RenderFlags.NONE


# CPU utilization


def _cpu_user(c: CpuSnapshot, p: CpuSnapshot, itv: int) -> float:
    """Percentage of time in user mode, guest time included."""
    return sp_value(p.user, c.user, itv)


def _cpu_usr(c: CpuSnapshot, p: CpuSnapshot, itv: int) -> float:
    """Percentage of time in user mode, guest time excluded."""
    # Guest time is included in user time
    if c.user - c.guest < p.user - p.guest:
        return 0.0
    return sp_value(p.user - p.guest, c.user - c.guest, itv)


def _cpu_system(c: CpuSnapshot, p: CpuSnapshot, itv: int) -> float:
    """Percentage of time in system mode, interrupts included."""
    return sp_value(p.system + p.hardirq + p.softirq, c.system + c.hardirq + c.softirq, itv)


def _cpu_idle(c: CpuSnapshot, p: CpuSnapshot, itv: int) -> float:
    """Percentage of idle time, zero if the counter went backwards."""
    if c.idle < p.idle:
        return 0.0
    return sp_value(p.idle, c.idle, itv)


def _cpu_counter(name: str) -> Callable[[CpuSnapshot, CpuSnapshot, int], float]:
    """Build a metric giving the percentage of time spent in one counter."""

    def value(c: CpuSnapshot, p: CpuSnapshot, itv: int) -> float:
        return sp_value(getattr(p, name), getattr(c, name), itv)

    return value


CPU_METRICS = {
    CpuMode.DEFAULT: (
        ("%user", _cpu_user),
        ("%nice", _cpu_counter("nice")),
        ("%system", _cpu_system),
        ("%iowait", _cpu_counter("iowait")),
        ("%steal", _cpu_counter("steal")),
    ),
    CpuMode.ALL: (
        ("%usr", _cpu_usr),
        ("%nice", _cpu_counter("nice")),
        ("%sys", _cpu_counter("system")),
        ("%iowait", _cpu_counter("iowait")),
        ("%steal", _cpu_counter("steal")),
        ("%irq", _cpu_counter("hardirq")),
        ("%soft", _cpu_counter("softirq")),
        ("%guest", _cpu_counter("guest")),
    ),
}


def render_cpu_stats(
    ctx: ActivityContext,
    current: Sequence[CpuSnapshot],
    previous: Sequence[CpuSnapshot],
) -> None:
    """
    Render CPU utilization for CPU "all" and every selected processor.

    Each processor's rates are computed over its own interval. An offline
    processor shows 100% idle, a tickless one 0%, and every other rate is
    0.00 for both.
    """
    metrics = CPU_METRICS[ctx.cpu_mode]

    for i, (scc, scp) in enumerate(zip(current, previous)):
        if not _selected(ctx.cpus, i):
            continue

        if i == 0:
            entity, db_label, args = "all", "-1", None
            itv, offline = ctx.g_itv, False
        else:
            entity, db_label, args = "cpu{0}", "{0}", IntArgs(i - 1)
            interval = normalize(scc, scp, ctx.itv)
            itv, offline = interval.divisor, interval.offline
            if offline:
                logger.debug("cpu%d offline", i - 1)
            elif interval.tickless:
                logger.debug("cpu%d tickless", i - 1)

        for n, (name, value) in enumerate(metrics):
            ctx.emit(
                RenderFlags.NONE,
                f"{entity}\t{name}",
                db_label if n == 0 else None,
                args,
                float_value=value(scc, scp, itv) if itv else 0.0,
            )

        if itv:
            idle = _cpu_idle(scc, scp, itv)
        else:
            idle = 100.0 if offline else 0.0
        ctx.emit(ctx.line_end, f"{entity}\t%idle", None, args, float_value=idle)


# Plain counter tables: (label, field)

PCSW_METRICS = (("proc/s", "processes"), ("cswch/s", "context_switch"))

SWAP_METRICS = (("pswpin/s", "pswpin"), ("pswpout/s", "pswpout"))

PAGING_METRICS = (
    ("pgpgin/s", "pgpgin"),
    ("pgpgout/s", "pgpgout"),
    ("fault/s", "pgfault"),
    ("majflt/s", "pgmajfault"),
    ("pgfree/s", "pgfree"),
    ("pgscank/s", "pgscan_kswapd"),
    ("pgscand/s", "pgscan_direct"),
    ("pgsteal/s", "pgsteal"),
)

IO_METRICS = (
    ("tps", "dk_drive"),
    ("rtps", "dk_drive_rio"),
    ("wtps", "dk_drive_wio"),
    ("bread/s", "dk_drive_rblk"),
    ("bwrtn/s", "dk_drive_wblk"),
)

KTABLES_METRICS = (
    ("dentunusd", "dentry_stat"),
    ("file-nr", "file_used"),
    ("inode-nr", "inode_used"),
    ("pty-nr", "pty_nr"),
)

NFS_METRICS = (
    ("call/s", "rpccnt"),
    ("retrans/s", "rpcretrans"),
    ("read/s", "readcnt"),
    ("write/s", "writecnt"),
    ("access/s", "accesscnt"),
    ("getatt/s", "getattcnt"),
)

NFSD_METRICS = (
    ("scall/s", "rpccnt"),
    ("badcall/s", "rpcbad"),
    ("packet/s", "netcnt"),
    ("udp/s", "netudpcnt"),
    ("tcp/s", "nettcpcnt"),
    ("hit/s", "rchits"),
    ("miss/s", "rcmisses"),
    ("sread/s", "readcnt"),
    ("swrite/s", "writecnt"),
    ("saccess/s", "accesscnt"),
    ("sgetatt/s", "getattcnt"),
)

SOCK_METRICS = (
    ("totsck", "sock_inuse"),
    ("tcpsck", "tcp_inuse"),
    ("udpsck", "udp_inuse"),
    ("rawsck", "raw_inuse"),
    ("ip-frag", "frag_inuse"),
    ("tcp-tw", "tcp_tw"),
)

IP_METRICS = (
    ("irec/s", "in_receives"),
    ("fwddgm/s", "forw_datagrams"),
    ("idel/s", "in_delivers"),
    ("orq/s", "out_requests"),
    ("asmrq/s", "reasm_reqds"),
    ("asmok/s", "reasm_oks"),
    ("fragok/s", "frag_oks"),
    ("fragcrt/s", "frag_creates"),
)

EIP_METRICS = (
    ("ihdrerr/s", "in_hdr_errors"),
    ("iadrerr/s", "in_addr_errors"),
    ("iukwnpr/s", "in_unknown_protos"),
    ("idisc/s", "in_discards"),
    ("odisc/s", "out_discards"),
    ("onort/s", "out_no_routes"),
    ("asmf/s", "reasm_fails"),
    ("fragf/s", "frag_fails"),
)

ICMP_METRICS = (
    ("imsg/s", "in_msgs"),
    ("omsg/s", "out_msgs"),
    ("iech/s", "in_echos"),
    ("iechr/s", "in_echo_reps"),
    ("oech/s", "out_echos"),
    ("oechr/s", "out_echo_reps"),
    ("itm/s", "in_timestamps"),
    ("itmr/s", "in_timestamp_reps"),
    ("otm/s", "out_timestamps"),
    ("otmr/s", "out_timestamp_reps"),
    ("iadrmk/s", "in_addr_masks"),
    ("iadrmkr/s", "in_addr_mask_reps"),
    ("oadrmk/s", "out_addr_masks"),
    ("oadrmkr/s", "out_addr_mask_reps"),
)

EICMP_METRICS = (
    ("ierr/s", "in_errors"),
    ("oerr/s", "out_errors"),
    ("idstunr/s", "in_dest_unreachs"),
    ("odstunr/s", "out_dest_unreachs"),
    ("itmex/s", "in_time_excds"),
    ("otmex/s", "out_time_excds"),
    ("iparmpb/s", "in_parm_probs"),
    ("oparmpb/s", "out_parm_probs"),
    ("isrcq/s", "in_src_quenchs"),
    ("osrcq/s", "out_src_quenchs"),
    ("iredir/s", "in_redirects"),
    ("oredir/s", "out_redirects"),
)

TCP_METRICS = (
    ("active/s", "active_opens"),
    ("passive/s", "passive_opens"),
    ("iseg/s", "in_segs"),
    ("oseg/s", "out_segs"),
)

ETCP_METRICS = (
    ("atmptf/s", "attempt_fails"),
    ("estres/s", "estab_resets"),
    ("retrans/s", "retrans_segs"),
    ("isegerr/s", "in_errs"),
    ("orsts/s", "out_rsts"),
)

UDP_METRICS = (
    ("idgm/s", "in_datagrams"),
    ("odgm/s", "out_datagrams"),
    ("noport/s", "no_ports"),
    ("idgmerr/s", "in_errors"),
)

SOCK6_METRICS = (
    ("tcp6sck", "tcp6_inuse"),
    ("udp6sck", "udp6_inuse"),
    ("raw6sck", "raw6_inuse"),
    ("ip6-frag", "frag6_inuse"),
)

IP6_METRICS = (
    ("irec6/s", "in_receives6"),
    ("fwddgm6/s", "out_forw_datagrams6"),
    ("idel6/s", "in_delivers6"),
    ("orq6/s", "out_requests6"),
    ("asmrq6/s", "reasm_reqds6"),
    ("asmok6/s", "reasm_oks6"),
    ("imcpck6/s", "in_mcast_pkts6"),
    ("omcpck6/s", "out_mcast_pkts6"),
    ("fragok6/s", "frag_oks6"),
    ("fragcr6/s", "frag_creates6"),
)

EIP6_METRICS = (
    ("ihdrer6/s", "in_hdr_errors6"),
    ("iadrer6/s", "in_addr_errors6"),
    ("iukwnp6/s", "in_unknown_protos6"),
    ("i2big6/s", "in_too_big_errors6"),
    ("idisc6/s", "in_discards6"),
    ("odisc6/s", "out_discards6"),
    ("inort6/s", "in_no_routes6"),
    ("onort6/s", "out_no_routes6"),
    ("asmf6/s", "reasm_fails6"),
    ("fragf6/s", "frag_fails6"),
    ("itrpck6/s", "in_truncated_pkts6"),
)

ICMP6_METRICS = (
    ("imsg6/s", "in_msgs6"),
    ("omsg6/s", "out_msgs6"),
    ("iech6/s", "in_echos6"),
    ("iechr6/s", "in_echo_replies6"),
    ("oechr6/s", "out_echo_replies6"),
    ("igmbq6/s", "in_group_memb_queries6"),
    ("igmbr6/s", "in_group_memb_responses6"),
    ("ogmbr6/s", "out_group_memb_responses6"),
    ("igmbrd6/s", "in_group_memb_reductions6"),
    ("ogmbrd6/s", "out_group_memb_reductions6"),
    ("irtsol6/s", "in_router_solicits6"),
    ("ortsol6/s", "out_router_solicits6"),
    ("irtad6/s", "in_router_advertisements6"),
    ("inbsol6/s", "in_neighbor_solicits6"),
    ("onbsol6/s", "out_neighbor_solicits6"),
    ("inbad6/s", "in_neighbor_advertisements6"),
    ("onbad6/s", "out_neighbor_advertisements6"),
)

EICMP6_METRICS = (
    ("ierr6/s", "in_errors6"),
    ("idtunr6/s", "in_dest_unreachs6"),
    ("odtunr6/s", "out_dest_unreachs6"),
    ("itmex6/s", "in_time_excds6"),
    ("otmex6/s", "out_time_excds6"),
    ("iprmpb6/s", "in_parm_problems6"),
    ("oprmpb6/s", "out_parm_problems6"),
    ("iredir6/s", "in_redirects6"),
    ("oredir6/s", "out_redirects6"),
    ("ipck2b6/s", "in_pkt_too_bigs6"),
    ("opck2b6/s", "out_pkt_too_bigs6"),
)

UDP6_METRICS = (
    ("idgm6/s", "in_datagrams6"),
    ("odgm6/s", "out_datagrams6"),
    ("noport6/s", "no_ports6"),
    ("idgmer6/s", "in_errors6"),
)


def render_rates(
    metrics: Sequence[tuple[str, str]],
    ctx: ActivityContext,
    current: Record,
    previous: Record,
    *,
    closes_record: bool = True,
) -> None:
    """Render the per-second rate of each counter in ``metrics``."""
    end = ctx.line_end if closes_record else RenderFlags.NONE
    for n, (label, name) in enumerate(metrics):
        ctx.emit(
            _last(end, n, len(metrics)),
            f"-\t{label}",
            None,
            float_value=ctx.rate(previous.get(name, 0), current.get(name, 0)),
        )


def render_levels(
    metrics: Sequence[tuple[str, str]],
    ctx: ActivityContext,
    current: Record,
    previous: Record,
) -> None:
    """Render each counter in ``metrics`` as an integer gauge."""
    for n, (label, name) in enumerate(metrics):
        ctx.emit(
            RenderFlags.USE_INT | _last(ctx.line_end, n, len(metrics)),
            f"-\t{label}",
            None,
            int_value=int(current.get(name, 0)),
        )


def render_irq_stats(ctx: ActivityContext, current: Sequence[int], previous: Sequence[int]) -> None:
    """Render interrupt rates for the "sum" entry and each selected interrupt."""
    for i, (sic, sip) in enumerate(zip(current, previous)):
        if not _selected(ctx.irqs, i):
            continue
        if i == 0:
            ctx.emit(ctx.line_end, "sum\tintr/s", "-1", float_value=ctx.rate(sip, sic))
        else:
            ctx.emit(
                ctx.line_end,
                "i{0:03d}\tintr/s",
                "{0}",
                IntArgs(i - 1),
                float_value=ctx.rate(sip, sic),
            )


def render_paging_stats(ctx: ActivityContext, current: Record, previous: Record) -> None:
    """Render paging rates and the page reclaim efficiency."""
    render_rates(PAGING_METRICS, ctx, current, previous, closes_record=False)

    scanned = (
        current.get("pgscan_kswapd", 0)
        + current.get("pgscan_direct", 0)
        - previous.get("pgscan_kswapd", 0)
        - previous.get("pgscan_direct", 0)
    )
    ctx.emit(
        ctx.line_end,
        "-\t%vmeff",
        None,
        float_value=sp_value(previous.get("pgsteal", 0), current.get("pgsteal", 0), scanned),
    )


# Memory


def render_memory_pages(ctx: ActivityContext, current: Record, previous: Record) -> None:
    """Render memory page rates (freed, buffer and cache pages per second)."""
    pages = (("frmpg/s", "frmkb"), ("bufpg/s", "bufkb"), ("campg/s", "camkb"))
    for n, (label, name) in enumerate(pages):
        ctx.emit(
            _last(ctx.line_end, n, len(pages)),
            f"-\t{label}",
            None,
            float_value=ctx.rate(
                ctx.kb_to_pages(previous.get(name, 0)),
                ctx.kb_to_pages(current.get(name, 0)),
            ),
        )


def render_memory_usage(ctx: ActivityContext, current: Record, previous: Record) -> None:
    """Render memory utilization amounts."""
    frmkb = current.get("frmkb", 0)
    tlmkb = current.get("tlmkb", 0)
    comkb = current.get("comkb", 0)

    ctx.emit(RenderFlags.USE_INT, "-\tkbmemfree", None, int_value=frmkb)
    ctx.emit(RenderFlags.USE_INT, "-\tkbmemused", None, int_value=tlmkb - frmkb)
    ctx.emit(RenderFlags.NONE, "-\t%memused", None, float_value=sp_value(frmkb, tlmkb, tlmkb))
    ctx.emit(RenderFlags.USE_INT, "-\tkbbuffers", None, int_value=current.get("bufkb", 0))
    ctx.emit(RenderFlags.USE_INT, "-\tkbcached", None, int_value=current.get("camkb", 0))
    ctx.emit(RenderFlags.USE_INT, "-\tkbcommit", None, int_value=comkb)
    ctx.emit(
        ctx.line_end,
        "-\t%commit",
        None,
        float_value=sp_value(0, comkb, tlmkb + current.get("tlskb", 0)),
    )


def render_swap_usage(ctx: ActivityContext, current: Record, previous: Record) -> None:
    """Render swap space utilization amounts."""
    frskb = current.get("frskb", 0)
    tlskb = current.get("tlskb", 0)
    caskb = current.get("caskb", 0)

    ctx.emit(RenderFlags.USE_INT, "-\tkbswpfree", None, int_value=frskb)
    ctx.emit(RenderFlags.USE_INT, "-\tkbswpused", None, int_value=tlskb - frskb)
    ctx.emit(RenderFlags.NONE, "-\t%swpused", None, float_value=sp_value(frskb, tlskb, tlskb))
    ctx.emit(RenderFlags.USE_INT, "-\tkbswpcad", None, int_value=caskb)
    ctx.emit(ctx.line_end, "-\t%swpcad", None, float_value=sp_value(0, caskb, tlskb - frskb))


def render_huge_stats(ctx: ActivityContext, current: Record, previous: Record) -> None:
    """Render huge pages utilization."""
    frhkb = current.get("frhkb", 0)
    tlhkb = current.get("tlhkb", 0)

    ctx.emit(RenderFlags.USE_INT, "-\tkbhugfree", None, int_value=frhkb)
    ctx.emit(RenderFlags.USE_INT, "-\tkbhugused", None, int_value=tlhkb - frhkb)
    ctx.emit(ctx.line_end, "-\t%hugused", None, float_value=sp_value(frhkb, tlhkb, tlhkb))


def render_queue_stats(ctx: ActivityContext, current: Record, previous: Record) -> None:
    """Render run queue length and load averages."""
    ctx.emit(RenderFlags.USE_INT, "-\trunq-sz", None, int_value=current.get("nr_running", 0))
    ctx.emit(RenderFlags.USE_INT, "-\tplist-sz", None, int_value=current.get("nr_threads", 0))
    # Load averages are stored multiplied by 100
    ctx.emit(RenderFlags.NONE, "-\tldavg-1", None, float_value=current.get("load_avg_1", 0) / 100)
    ctx.emit(RenderFlags.NONE, "-\tldavg-5", None, float_value=current.get("load_avg_5", 0) / 100)
    ctx.emit(ctx.line_end, "-\tldavg-15", None, float_value=current.get("load_avg_15", 0) / 100)


# Devices

SERIAL_METRICS = (
    ("rcvin/s", "rx"),
    ("xmtin/s", "tx"),
    ("framerr/s", "frame"),
    ("prtyerr/s", "parity"),
    ("brk/s", "brk"),
    ("ovrun/s", "overrun"),
)

NET_DEV_METRICS = (
    ("rxpck/s", "rx_packets", 1),
    ("txpck/s", "tx_packets", 1),
    ("rxkB/s", "rx_bytes", 1024),
    ("txkB/s", "tx_bytes", 1024),
    ("rxcmp/s", "rx_compressed", 1),
    ("txcmp/s", "tx_compressed", 1),
    ("rxmcst/s", "multicast", 1),
)

NET_EDEV_METRICS = (
    ("rxerr/s", "rx_errors"),
    ("txerr/s", "tx_errors"),
    ("coll/s", "collisions"),
    ("rxdrop/s", "rx_dropped"),
    ("txdrop/s", "tx_dropped"),
    ("txcarr/s", "tx_carrier_errors"),
    ("rxfram/s", "rx_frame_errors"),
    ("rxfifo/s", "rx_fifo_errors"),
    ("txfifo/s", "tx_fifo_errors"),
)


def match_previous(
    current: Records,
    previous: Records,
    key: Callable[[Record], Any],
) -> list[tuple[Record, Record]]:
    """
    Pair each current device record with its previous record by key.

    A device absent from the previous sample is paired with an empty record,
    so its counters read as zero.
    """
    by_key = {key(record): record for record in previous}
    return [(record, by_key.get(key(record), {})) for record in current]


def render_serial_stats(ctx: ActivityContext, current: Records, previous: Records) -> None:
    """Render serial line rates for lines present in both samples."""
    for ssc, ssp in zip(current, previous):
        line = ssc.get("line", 0)
        if line == 0 or line != ssp.get("line", 0):
            continue
        for n, (label, name) in enumerate(SERIAL_METRICS):
            ctx.emit(
                _last(ctx.line_end, n, len(SERIAL_METRICS)),
                f"ttyS{{0}}\t{label}",
                "{0}",
                IntArgs(line - 1),
                float_value=ctx.rate(ssp.get(name, 0), ssc.get(name, 0)),
            )


@dataclass(slots=True, frozen=True)
class ExtDiskStats:
    """Extended statistics derived from two disk samples."""

    util: float
    svctm: float
    await_time: float
    arqsz: float


def compute_ext_disk_stats(sdc: Record, sdp: Record, itv: int, hz: int) -> ExtDiskStats:
    """Compute utilization, service time, wait time and request size."""
    nr_ios = sdc.get("nr_ios", 0) - sdp.get("nr_ios", 0)
    tput = s_value(0, nr_ios, itv, hz)
    util = s_value(sdp.get("tot_ticks", 0), sdc.get("tot_ticks", 0), itv, hz)

    if nr_ios:
        ticks = (sdc.get("rd_ticks", 0) - sdp.get("rd_ticks", 0)) + (
            sdc.get("wr_ticks", 0) - sdp.get("wr_ticks", 0)
        )
        sectors = (sdc.get("rd_sect", 0) - sdp.get("rd_sect", 0)) + (
            sdc.get("wr_sect", 0) - sdp.get("wr_sect", 0)
        )
        await_time = ticks / nr_ios
        arqsz = sectors / nr_ios
    else:
        await_time = arqsz = 0.0

    return ExtDiskStats(
        util=util,
        svctm=util / tput if tput else 0.0,
        await_time=await_time,
        arqsz=arqsz,
    )


def _disk_key(record: Record) -> tuple[int, int]:
    """Identify a disk by its major and minor numbers."""
    return (record.get("major", 0), record.get("minor", 0))


def disk_name(record: Record, pretty: bool) -> str:
    """Name a disk by its persistent name when pretty printing, else by major/minor."""
    major, minor = _disk_key(record)
    if pretty and record.get("name"):
        return str(record["name"])
    return f"dev{major}-{minor}"


def render_disk_stats(ctx: ActivityContext, current: Records, previous: Records) -> None:
    """Render block device activity."""
    for sdc, sdp in match_previous(current, previous, _disk_key):
        if sum(_disk_key(sdc)) == 0:
            continue

        xds = compute_ext_disk_stats(sdc, sdp, ctx.itv, ctx.hz)
        args = TextArgs(disk_name(sdc, ctx.pretty))
        values = (
            ("tps", ctx.rate(sdp.get("nr_ios", 0), sdc.get("nr_ios", 0))),
            ("rd_sec/s", ctx.rate(sdp.get("rd_sect", 0), sdc.get("rd_sect", 0))),
            ("wr_sec/s", ctx.rate(sdp.get("wr_sect", 0), sdc.get("wr_sect", 0))),
            ("avgrq-sz", xds.arqsz),
            ("avgqu-sz", ctx.rate(sdp.get("rq_ticks", 0), sdc.get("rq_ticks", 0)) / 1000.0),
            ("await", xds.await_time),
            ("svctm", xds.svctm),
            ("%util", xds.util / 10.0),
        )
        for n, (label, value) in enumerate(values):
            ctx.emit(
                _last(ctx.line_end, n, len(values)),
                f"{{0}}\t{label}",
                "{0}",
                args,
                float_value=value,
            )


def _render_interface_rates(
    metrics: Sequence[tuple[str, str, int]],
    ctx: ActivityContext,
    current: Records,
    previous: Records,
) -> None:
    """Render per-interface rates for interfaces named in both samples."""
    for sndc, sndp in match_previous(current, previous, lambda r: r.get("interface", "")):
        interface = sndc.get("interface", "")
        if not interface:
            continue
        args = TextArgs(str(interface))
        for n, (label, name, scale) in enumerate(metrics):
            ctx.emit(
                _last(ctx.line_end, n, len(metrics)),
                f"{{0}}\t{label}",
                "{0}",
                args,
                float_value=ctx.rate(sndp.get(name, 0), sndc.get(name, 0)) / scale,
            )


def render_net_dev_stats(ctx: ActivityContext, current: Records, previous: Records) -> None:
    """Render network interface traffic."""
    _render_interface_rates(NET_DEV_METRICS, ctx, current, previous)


def render_net_edev_stats(ctx: ActivityContext, current: Records, previous: Records) -> None:
    """Render network interface errors."""
    metrics = tuple((label, name, 1) for label, name in NET_EDEV_METRICS)
    _render_interface_rates(metrics, ctx, current, previous)


# Power management and sensors


def render_cpufreq_stats(
    ctx: ActivityContext,
    current: Sequence[int],
    previous: Sequence[int],
) -> None:
    """Render the clock frequency of each selected CPU."""
    for i, cpufreq in enumerate(current):
        if not _selected(ctx.cpus, i):
            continue
        # Frequencies are recorded in units of 10 kHz
        mhz = cpufreq / 100
        if i == 0:
            ctx.emit(ctx.line_end, "all\tMHz", "-1", float_value=mhz)
        else:
            ctx.emit(ctx.line_end, "cpu{0}\tMHz", "{0}", IntArgs(i - 1), float_value=mhz)


def weighted_frequency(current: Records, previous: Records) -> float:
    """Average frequency in MHz weighted by the time spent at each frequency."""
    tisfreq = 0
    tis = 0
    for spc_k, spp_k in zip(current, previous):
        freq = spc_k.get("freq", 0)
        if not freq:
            break
        delta = spc_k.get("time_in_state", 0) - spp_k.get("time_in_state", 0)
        tisfreq += (freq // 1000) * delta
        tis += delta
    return tisfreq / tis if tis else 0.0


def render_wghfreq_stats(
    ctx: ActivityContext,
    current: Sequence[Records],
    previous: Sequence[Records],
) -> None:
    """Render the weighted average clock frequency of each selected CPU."""
    for i, (spc, spp) in enumerate(zip(current, previous)):
        if not _selected(ctx.cpus, i):
            continue
        mhz = weighted_frequency(spc, spp)
        if i == 0:
            ctx.emit(ctx.line_end, "all\twghMHz", "-1", float_value=mhz)
        else:
            ctx.emit(ctx.line_end, "cpu{0}\twghMHz", "{0}", IntArgs(i - 1), float_value=mhz)


def _percent_of_range(value: float, low: float, high: float) -> float:
    """Position of a value within its range, as a percentage."""
    if high - low:
        return (value - low) / (high - low) * 100
    return 0.0


def render_fan_stats(ctx: ActivityContext, current: Records, previous: Records) -> None:
    """Render fan speeds. The delimited dialect leads with the device and fan number."""
    for i, spc in enumerate(current):
        rpm = spc.get("rpm", 0.0)
        drpm = rpm - spc.get("rpm_min", 0.0)
        if ctx.renderer.dialect is Dialect.DELIMITED:
            device = TextArgs(str(spc.get("device", "")))
            ctx.emit(RenderFlags.USE_INT, None, "{0}", device, int_value=i + 1)
            ctx.emit(RenderFlags.NONE, None, None, float_value=rpm)
            ctx.emit(ctx.line_end, None, None, float_value=drpm)
        else:
            args = IntArgs(i + 1)
            ctx.emit(RenderFlags.NONE, "fan{0}\trpm", None, args, float_value=rpm)
            ctx.emit(ctx.line_end, "fan{0}\tdrpm", None, args, float_value=drpm)


def _render_sensor(
    ctx: ActivityContext,
    current: Records,
    *,
    name: str,
    unit: str,
    first: int,
) -> None:
    """Render each sensor value and its percentage of the sensor range."""
    for i, spc in enumerate(current):
        number = i + first
        value = spc.get(name, 0.0)
        percent = _percent_of_range(value, spc.get(f"{name}_min", 0.0), spc.get(f"{name}_max", 0.0))
        if ctx.renderer.dialect is Dialect.DELIMITED:
            device = TextArgs(str(spc.get("device", "")))
            ctx.emit(RenderFlags.USE_INT, None, "{0}", device, int_value=number)
            ctx.emit(RenderFlags.NONE, None, None, float_value=value)
            ctx.emit(ctx.line_end, None, None, float_value=percent)
        else:
            args = IntArgs(number)
            ctx.emit(RenderFlags.NONE, f"{name}{{0}}\t{unit}", None, args, float_value=value)
            ctx.emit(ctx.line_end, f"{name}{{0}}\t%{name}", None, args, float_value=percent)


def render_temp_stats(ctx: ActivityContext, current: Records, previous: Records) -> None:
    """Render device temperatures, numbered from 1."""
    _render_sensor(ctx, current, name="temp", unit="degC", first=1)


def render_in_stats(ctx: ActivityContext, current: Records, previous: Records) -> None:
    """Render voltage inputs, numbered from 0."""
    _render_sensor(ctx, current, name="in", unit="inV", first=0)


ACTIVITIES: dict[str, Activity] = {
    activity.name: activity
    for activity in (
        Activity("cpu", "cpu", render_cpu_stats),
        Activity("pcsw", "pcsw", partial(render_rates, PCSW_METRICS)),
        Activity("irq", "irq", render_irq_stats),
        Activity("swap", "swap", partial(render_rates, SWAP_METRICS)),
        Activity("paging", "paging", render_paging_stats),
        Activity("io", "io", partial(render_rates, IO_METRICS)),
        Activity("memory", "memory", render_memory_pages),
        Activity("memory_usage", "memory", render_memory_usage),
        Activity("swap_usage", "memory", render_swap_usage),
        Activity("ktables", "ktables", partial(render_levels, KTABLES_METRICS)),
        Activity("queue", "queue", render_queue_stats),
        Activity("serial", "serial", render_serial_stats),
        Activity("disk", "disk", render_disk_stats),
        Activity("net_dev", "net_dev", render_net_dev_stats),
        Activity("net_edev", "net_edev", render_net_edev_stats),
        Activity("net_nfs", "net_nfs", partial(render_rates, NFS_METRICS)),
        Activity("net_nfsd", "net_nfsd", partial(render_rates, NFSD_METRICS)),
        Activity("net_sock", "net_sock", partial(render_levels, SOCK_METRICS)),
        Activity("net_ip", "net_ip", partial(render_rates, IP_METRICS)),
        Activity("net_eip", "net_eip", partial(render_rates, EIP_METRICS)),
        Activity("net_icmp", "net_icmp", partial(render_rates, ICMP_METRICS)),
        Activity("net_eicmp", "net_eicmp", partial(render_rates, EICMP_METRICS)),
        Activity("net_tcp", "net_tcp", partial(render_rates, TCP_METRICS)),
        Activity("net_etcp", "net_etcp", partial(render_rates, ETCP_METRICS)),
        Activity("net_udp", "net_udp", partial(render_rates, UDP_METRICS)),
        Activity("net_sock6", "net_sock6", partial(render_levels, SOCK6_METRICS)),
        Activity("net_ip6", "net_ip6", partial(render_rates, IP6_METRICS)),
        Activity("net_eip6", "net_eip6", partial(render_rates, EIP6_METRICS)),
        Activity("net_icmp6", "net_icmp6", partial(render_rates, ICMP6_METRICS)),
        Activity("net_eicmp6", "net_eicmp6", partial(render_rates, EICMP6_METRICS)),
        Activity("net_udp6", "net_udp6", partial(render_rates, UDP6_METRICS)),
        Activity("cpufreq", "cpufreq", render_cpufreq_stats),
        Activity("fan", "fan", render_fan_stats),
        Activity("temp", "temp", render_temp_stats),
        Activity("in", "in", render_in_stats),
        Activity("huge", "huge", render_huge_stats),
        Activity("wghfreq", "wghfreq", render_wghfreq_stats),
    )
}
