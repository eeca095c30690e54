# statusbar

A small status monitor for Linux. Once a second it collects pieces of
system information, formats them into one line, and either writes that
line to standard output or sets it as the name of the X root window. Window
managers such as dwm show that name in their bar.

The package has no dependencies outside the standard library. It talks to
the X server over its own socket connection, reading the cookie from
`$XAUTHORITY` or `~/.Xauthority`.

## Installation

```
pip install .
```

## Usage

```
statusbar [-v] [-s] [-1]
```

- `-v` writes the version to standard error and exits with status 1.
- `-s` writes the status line to standard output, not to the X root
  window. It writes a new line once a second.
- `-1` writes one status line to standard output and exits.

Any other option, or any operand, prints a usage message and exits with
status 1.

With no options the line is stored as the name of the root window of the
display in `$DISPLAY`. When the program stops, it clears that name.
`SIGINT` or `SIGTERM` stops the loop. `SIGUSR1` forces an update straight
away.

The built-in line shows:

- battery `BAT0`
- usage of `/`
- RAM
- CPU
- the time

Each item is coloured with ANSI escape sequences. These are defined in
`statusbar.cli.ARGS`.

A component that cannot produce a value shows `n/a`. The whole line is
limited to 2047 bytes.

## Components

Each component is a plain function. It takes one argument and returns a
string, or `None` when no value can be read. The argument is a path, an
interface name, a format string, or an unused value.

| Module | Functions |
| --- | --- |
| `statusbar.basic` | `cat`, `datetime`, `hostname`, `kernel_release`, `load_avg`, `num_files`, `run_command`, `uptime`, `format_uptime`, `gid`, `uid`, `username`, `entropy` |
| `statusbar.power` | `battery_perc`, `battery_state`, `battery_remaining`, `temp` |
| `statusbar.system` | `cpu_freq`, `cpu_perc`, `ram_free`, `ram_perc`, `ram_total`, `ram_used`, `swap_free`, `swap_perc`, `swap_total`, `swap_used`, `disk_free`, `disk_perc`, `disk_total`, `disk_used`, `read_meminfo`, `CpuUsage` |
| `statusbar.network` | `ipv4`, `ipv6`, `up`, `netspeed_rx`, `netspeed_tx`, `ByteRate` |
| `statusbar.x11` | `keyboard_indicators`, `format_indicators`, `Display` |
| `statusbar.wifi` | `wifi_essid`, `wifi_perc`, `rssi_to_percent`, `find_attribute` |
| `statusbar.volume` | `vol_perc` |

Where each component gets its data:

- **`statusbar.basic`**
  - `run_command` runs a shell command and returns the first line of its
    output.
  - `cat` returns the first line of a file.
  - `datetime` takes a `strftime` format.
- **`statusbar.power`**
  - The battery functions read `/sys/class/power_supply/<name>`. Another
    directory can be given as `root`.
  - `battery_state` returns `+` while charging, `-` while discharging, `o`
    when full or not charging, and `?` otherwise.
  - `temp` reads a millidegree file, such as one under
    `/sys/class/thermal`.
- **`statusbar.system`**
  - The memory and swap functions read `/proc/meminfo`.
  - The CPU functions read `/proc/stat` and `cpufreq`.
  - The disk functions use `os.statvfs`.
  - `cpu_perc` reports usage since its previous call, so its first call
    returns `None`.
- **`statusbar.network`**
  - `ipv4` uses the `SIOCGIFADDR` ioctl.
  - `ipv6` reads `/proc/net/if_inet6`.
  - `up` reads `/sys/class/net/<iface>/flags`.
  - The speed functions return bytes per second since the previous call.
    The first call returns `None`.
- **`statusbar.x11`**
  - `keyboard_indicators` takes a format of `c` (caps lock) and `n` (num
    lock), each optionally followed by `?`.
  - A letter followed by `?` appears only when its light is on.
  - Any other letter is always shown: upper case when on, lower case when
    off.
- **`statusbar.wifi`** queries nl80211 over a generic netlink socket.
- **`statusbar.volume`** reads the `vol` channel of an OSS mixer device,
  such as `/dev/mixer`.

Sizes are given in human-readable form by `statusbar.util.fmt_human`, for
example `1.5 Gi`. It uses base 1024 or base 1000; any other base raises
`ValueError`.

## Building your own line

Use `statusbar.cli.Arg` and `statusbar.cli.render_status`:

```python
from statusbar.basic import datetime
from statusbar.cli import Arg, render_status
from statusbar.system import ram_perc

line = render_status(
    [
        Arg(ram_perc, "RAM: %s%% | ", None),
        Arg(datetime, "%s", "%H:%M"),
    ],
    "n/a",
    2048,
)
print(line)
```

## Limits

- There is no configuration file. The `statusbar` command always shows
  the components in `statusbar.cli.ARGS`, and its update interval is
  fixed at one second. For any other selection, call `render_status`
  yourself.
- The components read Linux interfaces: `/proc`, `/sys`, netlink, and OSS
  ioctls. Apart from `entropy`, they do not support the BSDs.
- There is no keyboard layout component.

## Running the tests

```
pip install .[test]
pytest
```